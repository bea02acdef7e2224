"""
Review Orchestrator component.

Runs one review: fetch the pull request diff, detect framework and language,
annotate the diff with post-image line numbers, ask the text-generation
service for a review and normalize its answer. Only a failure to fetch the
diff reaches the caller; every later failure degrades to the fallback result.
"""

import time
from typing import Callable, Optional, Union

from bitbucket_reviewer.analyzers.diff_annotator import (
    render_annotated_diff,
    should_include_file,
    split_file_sections,
)
from bitbucket_reviewer.analyzers.prompt_builder import (
    build_review_prompt,
    detect_framework,
    detect_language,
)
from bitbucket_reviewer.analyzers.response_normalizer import (
    create_fallback_result,
    parse_review_response,
)
from bitbucket_reviewer.models.review import ReviewResult
from bitbucket_reviewer.services.bitbucket_client import BitbucketClient, BitbucketError
from bitbucket_reviewer.services.llm_client import LLMClient
from bitbucket_reviewer.utils.logging import get_logger, log_error_with_context, log_review_phase
from bitbucket_reviewer.utils.metrics import ReviewMetrics, track_api_call

logger = get_logger(__name__)

BitbucketClientFactory = Callable[[str], BitbucketClient]


class ReviewOrchestrator:
    """Coordinates diff retrieval, prompt building, generation and normalization."""

    def __init__(
        self,
        settings=None,
        llm_client: Optional[LLMClient] = None,
        bitbucket_client_factory: Optional[BitbucketClientFactory] = None,
    ):
        """
        Initialize the Review Orchestrator.

        Args:
            settings: Application settings (defaults to the global settings)
            llm_client: Text-generation client (built from settings if omitted)
            bitbucket_client_factory: Builds a Bitbucket client for an access token
        """
        if settings is None:
            from bitbucket_reviewer.config import settings as app_settings
            settings = app_settings

        self.settings = settings
        self.llm_client = llm_client or LLMClient(settings)
        self.bitbucket_client_factory = bitbucket_client_factory or self._default_bitbucket_client

    def _default_bitbucket_client(self, access_token: str) -> BitbucketClient:
        return BitbucketClient(access_token, settings=self.settings)

    async def review_pull_request(
        self,
        repository: str,
        pr_id: Union[int, str],
        access_token: str,
    ) -> ReviewResult:
        """
        Review a Bitbucket pull request.

        Args:
            repository: Repository full name ("workspace/slug")
            pr_id: Pull request ID
            access_token: Caller's Bitbucket bearer token

        Returns:
            Normalized review result, or the fallback result if generation
            or normalization fails

        Raises:
            BitbucketError: If the diff cannot be fetched
        """
        pr_id = str(pr_id)
        metrics = ReviewMetrics(repository, pr_id)
        metrics.start()
        review_logger = logger.with_context(repository=repository, pr_id=pr_id)

        log_review_phase(review_logger, repository, pr_id, "fetch_diff", "started")
        start_time = time.time()
        try:
            async with self.bitbucket_client_factory(access_token) as bitbucket:
                diff_text = await bitbucket.get_pull_request_diff(repository, pr_id)
        except BitbucketError as e:
            log_review_phase(review_logger, repository, pr_id, "fetch_diff", "failed")
            metrics.complete(status="failed", error_message=str(e))
            raise
        except Exception as e:
            log_error_with_context(review_logger, "Unexpected error fetching PR diff", e)
            metrics.complete(status="failed", error_message=str(e))
            raise BitbucketError(f"Failed to fetch PR diff: {e}") from e
        finally:
            metrics.record_api_call("bitbucket", (time.time() - start_time) * 1000)

        log_review_phase(review_logger, repository, pr_id, "fetch_diff", "completed")
        return await self._review(diff_text, metrics)

    async def review_diff(
        self,
        diff_text: str,
        framework: Optional[str] = None,
        language: Optional[str] = None,
    ) -> ReviewResult:
        """
        Review a caller-supplied diff. Never raises.

        Args:
            diff_text: Unified diff text
            framework: Framework label; detected from the diff if omitted
            language: Language label; detected from the diff if omitted

        Returns:
            Normalized review result, or the fallback result
        """
        metrics = ReviewMetrics("", "")
        metrics.start()
        return await self._review(diff_text, metrics, framework=framework, language=language)

    async def _review(
        self,
        diff_text: str,
        metrics: ReviewMetrics,
        framework: Optional[str] = None,
        language: Optional[str] = None,
    ) -> ReviewResult:
        repository, pr_id = metrics.repository, metrics.pr_id
        review_logger = logger.with_context(repository=repository, pr_id=pr_id)

        try:
            framework = framework or detect_framework(diff_text)
            language = language or detect_language(diff_text)
            review_logger.info(f"Detected framework: {framework}, language: {language}")

            log_review_phase(review_logger, repository, pr_id, "annotate", "started")
            sections = split_file_sections(diff_text, should_include_file)
            included = [section for section in sections if section.included]
            metrics.record_files_reviewed(len(included))
            annotated_diff = render_annotated_diff([line for section in included for line in section.lines])
            log_review_phase(review_logger, repository, pr_id, "annotate", "completed")

            log_review_phase(review_logger, repository, pr_id, "generate", "started")
            prompt = build_review_prompt(annotated_diff, framework, language)
            async with track_api_call(metrics, "openai", review_logger, endpoint="chat.completions", method="POST"):
                raw_response = await self.llm_client.complete(prompt)
            log_review_phase(review_logger, repository, pr_id, "generate", "completed")

            log_review_phase(review_logger, repository, pr_id, "normalize", "started")
            result = parse_review_response(raw_response, framework, language)
        except Exception as e:
            log_error_with_context(review_logger, "Review generation failed", e)
            result = None

        if result is None:
            review_logger.warning("Returning fallback review result")
            metrics.record_fallback()
            result = create_fallback_result()
            metrics.record_comments(len(result.comments))
            metrics.complete(status="fallback")
            return result

        log_review_phase(review_logger, repository, pr_id, "normalize", "completed")
        metrics.record_comments(len(result.comments))
        metrics.complete(status="completed")
        return result
