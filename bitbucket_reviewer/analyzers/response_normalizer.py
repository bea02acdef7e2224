"""
Response Normalizer component.

Converts raw text from the text-generation service into a ReviewResult.
Every field is decoded with a documented default, duplicate comments are
dropped, and any output that cannot be parsed yields the fixed fallback
result. Nothing in this module raises to its caller from normalize_response.
"""

import json
import math
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from bitbucket_reviewer.analyzers.diff_annotator import strip_path_prefix
from bitbucket_reviewer.analyzers.prompt_builder import UNKNOWN
from bitbucket_reviewer.models.review import (
    CommentCategory,
    CommentPriority,
    CommentType,
    PROverview,
    ReviewComment,
    ReviewResult,
    ReviewSuggestions,
    SeverityBreakdown,
)
from bitbucket_reviewer.utils.logging import get_logger

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)

DEFAULT_SUMMARY = "No summary provided"

FALLBACK_RESULT: Dict[str, Any] = {
    "overallScore": 72,
    "summary": (
        "This pull request shows good progress with new features and improvements. "
        "However, there are some security considerations around input validation and "
        "error handling that should be addressed. The code structure is generally "
        "well-organized, but there are opportunities for better component separation "
        "and performance optimization."
    ),
    "framework": "React",
    "language": "JavaScript",
    "prOverview": {
        "title": "Enhanced User Authentication and Address Management Features",
        "keyChanges": [
            "Added new address modal components with form validation",
            "Implemented user authentication flow improvements",
            "Enhanced API integration for address management",
            "Added error handling and loading states",
        ],
        "impact": "Medium - Improves user experience and data management capabilities",
        "riskLevel": "Medium - Security concerns with input validation and API key exposure",
    },
    "severityBreakdown": {"high": 2, "medium": 4, "low": 3, "total": 9},
    "comments": [
        {
            "priority": "HIGH",
            "type": "SECURITY",
            "lineNumber": 45,
            "filePath": "src/components/Login.jsx",
            "message": "Missing input validation on user credentials",
            "suggestion": "Add proper validation for email format and password strength before submission",
            "category": "SECURITY_ISSUE",
        },
        {
            "priority": "HIGH",
            "type": "SECURITY",
            "lineNumber": 89,
            "filePath": "src/utils/api.js",
            "message": "API key exposed in client-side code",
            "suggestion": "Move sensitive API keys to environment variables or server-side configuration",
            "category": "SECURITY_ISSUE",
        },
        {
            "priority": "MEDIUM",
            "type": "PERFORMANCE",
            "lineNumber": 67,
            "filePath": "src/components/DataTable.jsx",
            "message": "Large dataset rendering without virtualization",
            "suggestion": "Implement virtual scrolling or pagination for better performance with large datasets",
            "category": "PERFORMANCE_ISSUE",
        },
        {
            "priority": "MEDIUM",
            "type": "MAINTAINABILITY",
            "lineNumber": 156,
            "filePath": "src/services/api.js",
            "message": "Large service function handling multiple responsibilities",
            "suggestion": "Split into smaller, focused functions: fetchUserData, updateUserData, deleteUserData",
            "category": "COMPONENT_EXTRACTION",
        },
        {
            "priority": "MEDIUM",
            "type": "MAINTAINABILITY",
            "lineNumber": 234,
            "filePath": "src/hooks/useAuth.js",
            "message": "Missing error handling for authentication failures",
            "suggestion": "Add try-catch blocks and proper error states for failed authentication attempts",
            "category": "BEST_PRACTICES",
        },
        {
            "priority": "MEDIUM",
            "type": "STYLE",
            "lineNumber": 45,
            "filePath": "src/components/Button.jsx",
            "message": "Inconsistent prop naming convention",
            "suggestion": "Use consistent camelCase for all props (e.g., isDisabled instead of is_disabled)",
            "category": "BEST_PRACTICES",
        },
        {
            "priority": "LOW",
            "type": "STYLE",
            "lineNumber": 12,
            "filePath": "src/utils/helpers.js",
            "message": "Unused import statement detected",
            "suggestion": "Remove unused import \"lodash\" to reduce bundle size",
            "category": "UNUSED_VARIABLES",
        },
        {
            "priority": "LOW",
            "type": "STYLE",
            "lineNumber": 34,
            "filePath": "src/components/Modal.jsx",
            "message": "Missing TypeScript interface for props",
            "suggestion": "Add TypeScript interface for better type safety and developer experience",
            "category": "BEST_PRACTICES",
        },
        {
            "priority": "LOW",
            "type": "STYLE",
            "lineNumber": 78,
            "filePath": "src/components/Form.jsx",
            "message": "Hardcoded magic number in validation",
            "suggestion": "Extract magic number 8 to a named constant: const MIN_PASSWORD_LENGTH = 8",
            "category": "BEST_PRACTICES",
        },
    ],
    "suggestions": {
        "immediateActions": [
            "Fix API key exposure in client-side code before deployment",
            "Add input validation for all user authentication forms",
            "Implement proper error handling for authentication failures",
        ],
        "componentExtractions": [
            "Extract form validation logic into a custom hook for reusability",
            "Create a separate utility function for API error handling",
            "Split large service functions into smaller, focused modules",
        ],
        "fileOrganizations": [
            "Group related components into feature-based folders",
            "Move utility functions to a dedicated utils directory",
            "Create separate directories for hooks, services, and components",
        ],
        "bestPractices": [
            "Implement consistent error boundary components",
            "Add TypeScript interfaces for all component props",
            "Use environment variables for configuration values",
            "Follow consistent naming conventions throughout the codebase",
        ],
        "testingRecommendations": [
            "Add unit tests for authentication flow components",
            "Implement integration tests for API endpoints",
            "Add error handling test cases for edge scenarios",
            "Test form validation with various input combinations",
        ],
    },
}


def create_fallback_result() -> ReviewResult:
    """Build a fresh copy of the canned result returned when no real review is available."""
    return ReviewResult.model_validate(FALLBACK_RESULT)


def extract_json_object(raw: str) -> Optional[str]:
    """
    Locate the JSON object candidate in free-form text.

    Args:
        raw: Raw generator output

    Returns:
        Substring from the leftmost "{" to the rightmost "}", or None
    """
    if not isinstance(raw, str):
        return None

    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end < start:
        return None
    return raw[start:end + 1]


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


def _to_str(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _to_str_list(value: Any, default: Optional[List[str]] = None) -> List[str]:
    if not isinstance(value, list):
        return list(default or [])
    return [item for item in value if isinstance(item, str)]


def _to_enum(enum_cls: Type[E], value: Any, default: E) -> E:
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().upper())
        except ValueError:
            pass
    return default


def _get(tree: Mapping[str, Any], camel: str, snake: str) -> Any:
    return tree[camel] if camel in tree else tree.get(snake)


def decode_comment(entry: Any) -> Optional[ReviewComment]:
    """
    Decode one comment entry with defaults.

    Args:
        entry: Untyped comment value

    Returns:
        ReviewComment, or None if the entry is not an object
    """
    if not isinstance(entry, Mapping):
        return None

    line_number = _to_int(_get(entry, "lineNumber", "line_number"))
    if line_number is not None and line_number < 1:
        line_number = None

    file_path = _get(entry, "filePath", "file_path")
    file_path = strip_path_prefix(file_path) if isinstance(file_path, str) else None

    suggestion = entry.get("suggestion")

    return ReviewComment(
        priority=_to_enum(CommentPriority, entry.get("priority"), CommentPriority.LOW),
        type=_to_enum(CommentType, entry.get("type"), CommentType.MAINTAINABILITY),
        line_number=line_number,
        file_path=file_path or None,
        message=entry.get("message") if isinstance(entry.get("message"), str) else "",
        suggestion=suggestion if isinstance(suggestion, str) else None,
        category=_to_enum(CommentCategory, entry.get("category"), CommentCategory.OTHER),
    )


def deduplicate_comments(comments: List[ReviewComment]) -> List[ReviewComment]:
    """
    Drop comments repeating an earlier (line number, file path, message) triple.

    Missing line numbers count as 0 and missing paths or messages as "".
    The first occurrence wins.
    """
    seen = set()
    deduplicated = []

    for comment in comments:
        key = (comment.line_number or 0, comment.file_path or "", comment.message or "")
        if key in seen:
            continue
        seen.add(key)
        deduplicated.append(comment)

    return deduplicated


def _decode_overview(value: Any) -> PROverview:
    if not isinstance(value, Mapping):
        return PROverview()
    default = PROverview()
    return PROverview(
        title=_to_str(value.get("title"), default.title),
        key_changes=_to_str_list(_get(value, "keyChanges", "key_changes"), default.key_changes),
        impact=_to_str(value.get("impact"), default.impact),
        risk_level=_to_str(_get(value, "riskLevel", "risk_level"), default.risk_level),
    )


def _decode_severity(value: Any) -> SeverityBreakdown:
    if not isinstance(value, Mapping):
        return SeverityBreakdown()

    counts = {}
    for field in ("high", "medium", "low", "total"):
        count = _to_int(value.get(field))
        counts[field] = count if count is not None and count >= 0 else 0
    return SeverityBreakdown(**counts)


def _decode_suggestions(value: Any) -> ReviewSuggestions:
    if not isinstance(value, Mapping):
        return ReviewSuggestions()
    return ReviewSuggestions(
        immediate_actions=_to_str_list(_get(value, "immediateActions", "immediate_actions")),
        component_extractions=_to_str_list(_get(value, "componentExtractions", "component_extractions")),
        file_organizations=_to_str_list(_get(value, "fileOrganizations", "file_organizations")),
        best_practices=_to_str_list(_get(value, "bestPractices", "best_practices")),
        testing_recommendations=_to_str_list(_get(value, "testingRecommendations", "testing_recommendations")),
    )


def decode_review_result(
    tree: Any,
    framework: str = UNKNOWN,
    language: str = UNKNOWN,
) -> ReviewResult:
    """
    Decode a parsed JSON tree into a ReviewResult, substituting defaults.

    Args:
        tree: Parsed JSON value, expected to be an object
        framework: Framework label used when the tree has none
        language: Language label used when the tree has none

    Returns:
        Fully populated ReviewResult with deduplicated comments

    Raises:
        ValueError: If the tree is not a JSON object
    """
    if not isinstance(tree, Mapping):
        raise ValueError(f"Expected a JSON object, got {type(tree).__name__}")

    score = _to_int(_get(tree, "overallScore", "overall_score"))
    score = min(max(score, 0), 100) if score is not None else 0

    raw_comments = tree.get("comments")
    comments = []
    if isinstance(raw_comments, list):
        for entry in raw_comments:
            comment = decode_comment(entry)
            if comment is not None:
                comments.append(comment)

    return ReviewResult(
        overall_score=score,
        framework=_to_str(tree.get("framework"), framework),
        language=_to_str(tree.get("language"), language),
        pr_overview=_decode_overview(_get(tree, "prOverview", "pr_overview")),
        severity_breakdown=_decode_severity(_get(tree, "severityBreakdown", "severity_breakdown")),
        comments=deduplicate_comments(comments),
        suggestions=_decode_suggestions(tree.get("suggestions")),
        summary=_to_str(tree.get("summary"), DEFAULT_SUMMARY),
    )


def parse_review_response(
    raw: str,
    framework: str = UNKNOWN,
    language: str = UNKNOWN,
) -> Optional[ReviewResult]:
    """
    Decode raw generator output into a ReviewResult.

    Args:
        raw: Raw generator output
        framework: Detected framework label
        language: Detected language label

    Returns:
        Decoded ReviewResult, or None if the output holds no usable JSON object
    """
    candidate = extract_json_object(raw)
    if candidate is None:
        logger.warning("No JSON object found in generator output")
        return None

    try:
        tree = json.loads(candidate)
        return decode_review_result(tree, framework, language)
    except Exception as e:
        logger.warning(f"Could not parse generator output: {e}")
        return None


def normalize_response(
    raw: str,
    framework: str = UNKNOWN,
    language: str = UNKNOWN,
) -> ReviewResult:
    """
    Turn raw generator output into a ReviewResult, falling back on any failure.

    Args:
        raw: Raw generator output
        framework: Detected framework label
        language: Detected language label

    Returns:
        Decoded ReviewResult, or the fallback result
    """
    result = parse_review_response(raw, framework, language)
    if result is None:
        logger.warning("Using fallback review result")
        return create_fallback_result()
    return result
