"""API request and response data models."""

from typing import Any, List, Optional, Union

from pydantic import BaseModel

from .diff import DiffLineKind
from .review import CamelModel, ReviewComment


class ReviewPullRequestRequest(CamelModel):
    """Body of a pull request review request."""

    repository: Optional[str] = None
    pr_id: Optional[Union[int, str]] = None


class ReviewDiffRequest(CamelModel):
    """Body of an ad-hoc diff review request."""

    diff: Optional[str] = None
    framework: Optional[str] = None
    language: Optional[str] = None


class InlineCommentsRequest(CamelModel):
    """Diff plus review comments to align with its lines."""

    diff: Optional[str] = None
    comments: List[ReviewComment] = []


class AnnotatedLine(CamelModel):
    """Diff line as rendered on screen, with the comments anchored to it."""

    content: str
    kind: DiffLineKind
    line_number: Optional[int] = None
    comments: List[ReviewComment] = []


class FileDiff(CamelModel):
    """One file of a pull request diff with numbered lines."""

    path: str
    old_path: str
    change_type: str
    lines_added: int
    lines_removed: int
    included_in_review: bool
    lines: List[AnnotatedLine] = []


class InlineCommentsResponse(CamelModel):
    """Files with comments placed on their lines, plus comments that matched no line."""

    files: List[FileDiff] = []
    unplaced_comments: List[ReviewComment] = []


class Pagination(BaseModel):
    """Pagination details of a list response."""

    page: int
    pagelen: int
    size: int = 0
    next: Optional[Any] = None
    previous: Optional[Any] = None


class ApiResponse(BaseModel):
    """Standard response envelope."""

    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[str] = None


class PaginatedResponse(ApiResponse):
    """Response envelope for list endpoints."""

    pagination: Pagination
