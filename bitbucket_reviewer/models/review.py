"""Review result data models.

These models serialize with camelCase keys, the shape the dashboard
consumes, and accept either camelCase or snake_case on input.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CommentPriority(str, Enum):
    """Priority of a review comment."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class CommentType(str, Enum):
    """Kind of issue a review comment reports."""

    BUG = "BUG"
    SECURITY = "SECURITY"
    PERFORMANCE = "PERFORMANCE"
    MAINTAINABILITY = "MAINTAINABILITY"
    STYLE = "STYLE"
    ARCHITECTURE = "ARCHITECTURE"
    ERROR_HANDLING = "ERROR_HANDLING"
    TESTING = "TESTING"


class CommentCategory(str, Enum):
    """Category of the suggested improvement."""

    UNUSED_VARIABLES = "UNUSED_VARIABLES"
    COMPONENT_EXTRACTION = "COMPONENT_EXTRACTION"
    CODE_ORGANIZATION = "CODE_ORGANIZATION"
    BEST_PRACTICES = "BEST_PRACTICES"
    SECURITY_ISSUE = "SECURITY_ISSUE"
    PERFORMANCE_ISSUE = "PERFORMANCE_ISSUE"
    OTHER = "OTHER"


class ReviewComment(CamelModel):
    """Line-level finding reported by the reviewer."""

    priority: CommentPriority = CommentPriority.LOW
    type: CommentType = CommentType.MAINTAINABILITY
    line_number: Optional[int] = None
    file_path: Optional[str] = None
    message: str = ""
    suggestion: Optional[str] = None
    category: CommentCategory = CommentCategory.OTHER


class SeverityBreakdown(CamelModel):
    """Issue counts per priority, as reported by the reviewer."""

    high: int = 0
    medium: int = 0
    low: int = 0
    total: int = 0


class ReviewSuggestions(CamelModel):
    """Suggestion lists keyed by category."""

    immediate_actions: List[str] = []
    component_extractions: List[str] = []
    file_organizations: List[str] = []
    best_practices: List[str] = []
    testing_recommendations: List[str] = []


class PROverview(CamelModel):
    """High-level description of the pull request."""

    title: str = "Code Review Analysis"
    key_changes: List[str] = Field(default_factory=lambda: ["Code changes analyzed"])
    impact: str = "Medium"
    risk_level: str = "Medium"


class ReviewResult(CamelModel):
    """Complete review of a pull request."""

    overall_score: int = Field(default=0, ge=0, le=100)
    framework: str = "Unknown"
    language: str = "Unknown"
    pr_overview: PROverview = Field(default_factory=PROverview)
    severity_breakdown: SeverityBreakdown = Field(default_factory=SeverityBreakdown)
    comments: List[ReviewComment] = []
    suggestions: ReviewSuggestions = Field(default_factory=ReviewSuggestions)
    summary: str = "No summary provided"
