"""
AI review REST API endpoints.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from bitbucket_reviewer.analyzers.diff_annotator import place_comments
from bitbucket_reviewer.api.dependencies import bitbucket_http_exception, get_bearer_token
from bitbucket_reviewer.api.file_diffs import build_file_diffs
from bitbucket_reviewer.models.api_response import (
    InlineCommentsRequest,
    InlineCommentsResponse,
    ReviewDiffRequest,
    ReviewPullRequestRequest,
)
from bitbucket_reviewer.models.review import ReviewResult
from bitbucket_reviewer.services.bitbucket_client import BitbucketError
from bitbucket_reviewer.services.review_orchestrator import ReviewOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])

# Initialize review orchestrator
orchestrator = ReviewOrchestrator()


@router.post("/review-pr", response_model=ReviewResult)
async def review_pull_request(
    request: ReviewPullRequestRequest,
    access_token: str = Depends(get_bearer_token),
) -> ReviewResult:
    """
    Review an entire Bitbucket pull request.

    This endpoint:
    1. Fetches the pull request diff with the caller's token
    2. Sends the annotated diff to the text-generation service
    3. Returns the normalized review (or the fallback review)

    Args:
        request: Repository full name and pull request ID
        access_token: Caller's Bitbucket bearer token

    Returns:
        Review result

    Raises:
        HTTPException: If the request is incomplete or the diff cannot be fetched
    """
    if not request.repository or request.pr_id is None or str(request.pr_id).strip() == "":
        raise HTTPException(status_code=400, detail="Repository and PR ID are required")

    try:
        logger.info(f"Starting review of {request.repository} PR {request.pr_id}")
        return await orchestrator.review_pull_request(request.repository, request.pr_id, access_token)

    except BitbucketError as e:
        raise bitbucket_http_exception(e)
    except Exception as e:
        logger.error(f"Error reviewing pull request: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/review", response_model=ReviewResult)
async def review_diff(request: ReviewDiffRequest) -> ReviewResult:
    """
    Review a diff supplied in the request body.

    Framework and language are detected from the diff unless given.
    """
    if not request.diff:
        raise HTTPException(status_code=400, detail="Diff content is required")

    try:
        return await orchestrator.review_diff(request.diff, request.framework, request.language)
    except Exception as e:
        logger.error(f"Error reviewing diff: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/inline-comments", response_model=InlineCommentsResponse)
async def inline_comments(request: InlineCommentsRequest) -> InlineCommentsResponse:
    """
    Anchor review comments on the numbered lines of a diff.

    Comments whose file and line match no numbered line are returned as
    unplaced.
    """
    if not request.diff:
        raise HTTPException(status_code=400, detail="Diff content is required")

    sections, placements, unplaced = place_comments(request.diff, request.comments)
    return InlineCommentsResponse(
        files=build_file_diffs(sections, placements),
        unplaced_comments=unplaced,
    )


@router.get("/health")
async def ai_health() -> dict:
    """Report whether the text-generation service is configured."""
    return {
        "success": True,
        "message": "AI service is healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "generator": orchestrator.llm_client.describe(),
    }
