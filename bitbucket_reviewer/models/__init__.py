"""Data models for the Bitbucket PR Reviewer."""

from .api_response import (
    AnnotatedLine,
    ApiResponse,
    FileDiff,
    InlineCommentsRequest,
    InlineCommentsResponse,
    PaginatedResponse,
    Pagination,
    ReviewDiffRequest,
    ReviewPullRequestRequest,
)
from .diff import DiffLine, DiffLineKind, FileSection, Hunk
from .review import (
    CommentCategory,
    CommentPriority,
    CommentType,
    PROverview,
    ReviewComment,
    ReviewResult,
    ReviewSuggestions,
    SeverityBreakdown,
)

__all__ = [
    # Diff models
    "DiffLine",
    "DiffLineKind",
    "FileSection",
    "Hunk",
    # Review models
    "CommentCategory",
    "CommentPriority",
    "CommentType",
    "PROverview",
    "ReviewComment",
    "ReviewResult",
    "ReviewSuggestions",
    "SeverityBreakdown",
    # API models
    "AnnotatedLine",
    "ApiResponse",
    "FileDiff",
    "InlineCommentsRequest",
    "InlineCommentsResponse",
    "PaginatedResponse",
    "Pagination",
    "ReviewDiffRequest",
    "ReviewPullRequestRequest",
]
