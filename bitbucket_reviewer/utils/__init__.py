"""
Utility modules for the Bitbucket PR Reviewer.
"""

from bitbucket_reviewer.utils.logging import (
    get_logger,
    setup_logging,
    log_review_phase,
    log_api_call,
    log_error_with_context,
)
from bitbucket_reviewer.utils.metrics import (
    ReviewMetrics,
    track_api_call,
    emit_metric,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "log_review_phase",
    "log_api_call",
    "log_error_with_context",
    "ReviewMetrics",
    "track_api_call",
    "emit_metric",
]
