"""Diff annotation, prompt building and response normalization."""

from bitbucket_reviewer.analyzers.diff_annotator import (
    annotate_diff,
    annotate_diff_for_review,
    place_comments,
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
    decode_review_result,
    normalize_response,
    parse_review_response,
)

__all__ = [
    "annotate_diff",
    "annotate_diff_for_review",
    "place_comments",
    "render_annotated_diff",
    "should_include_file",
    "split_file_sections",
    "build_review_prompt",
    "detect_framework",
    "detect_language",
    "create_fallback_result",
    "decode_review_result",
    "normalize_response",
    "parse_review_response",
]
