"""
Metrics collection and emission for observability.

This module provides metrics tracking for:
- Review execution time
- Number of files sent to the reviewer and comments returned
- Whether the fallback result was used
- API call counts and latency
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bitbucket_reviewer.utils.logging import get_logger, log_api_call

logger = get_logger(__name__)


class ReviewMetrics:
    """
    Collects metrics during a single review.

    Tracks:
    - Execution start/end time
    - Files reviewed and comments produced
    - Fallback usage
    - API call counts and latency
    """

    def __init__(self, repository: str, pr_id: str):
        """
        Initialize metrics collector.

        Args:
            repository: Repository full name, or "" for an ad-hoc diff review
            pr_id: Pull request ID, or "" for an ad-hoc diff review
        """
        self.repository = repository
        self.pr_id = pr_id

        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.duration_ms: Optional[int] = None

        self.files_reviewed: int = 0
        self.comments_count: int = 0
        self.fallback_used: bool = False

        self.api_calls: Dict[str, int] = {}
        self.api_latencies: Dict[str, List[float]] = {}

        self.status: str = "running"
        self.error_message: Optional[str] = None

    def start(self) -> None:
        """Mark review start."""
        self.start_time = datetime.now(timezone.utc)
        self.status = "running"

    def complete(self, status: str = "completed", error_message: Optional[str] = None) -> None:
        """
        Mark review completion and log the summary.

        Args:
            status: Final status ('completed', 'fallback', 'failed')
            error_message: Error message if the review degraded or failed
        """
        self.end_time = datetime.now(timezone.utc)
        self.status = status
        self.error_message = error_message

        if self.start_time:
            duration = (self.end_time - self.start_time).total_seconds()
            self.duration_ms = int(duration * 1000)

        logger.info(
            f"Review finished with status {self.status}",
            extra={
                "repository": self.repository,
                "pr_id": self.pr_id,
                "status": self.status,
                "duration_ms": self.duration_ms,
                "files_reviewed": self.files_reviewed,
                "comments_count": self.comments_count,
                "fallback_used": self.fallback_used,
            }
        )

        if self.duration_ms is not None:
            emit_metric("review_duration_ms", self.duration_ms, status=self.status)

    def record_files_reviewed(self, count: int) -> None:
        self.files_reviewed = count

    def record_comments(self, count: int) -> None:
        self.comments_count = count

    def record_fallback(self) -> None:
        self.fallback_used = True

    def record_api_call(self, service: str, duration_ms: float) -> None:
        """
        Record API call and latency.

        Args:
            service: Service name (e.g., 'bitbucket', 'openai')
            duration_ms: Call duration in milliseconds
        """
        self.api_calls[service] = self.api_calls.get(service, 0) + 1
        self.api_latencies.setdefault(service, []).append(duration_ms)

    def get_metrics_summary(self) -> Dict[str, Any]:
        """
        Get summary of collected metrics.

        Returns:
            Dictionary of metrics
        """
        summary: Dict[str, Any] = {
            "repository": self.repository,
            "pr_id": self.pr_id,
            "status": self.status,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_ms": self.duration_ms,
            "files_reviewed": self.files_reviewed,
            "comments_count": self.comments_count,
            "fallback_used": self.fallback_used,
            "api_calls": self.api_calls,
        }

        if self.api_latencies:
            latency_stats = {}
            for service, latencies in self.api_latencies.items():
                if latencies:
                    latency_stats[service] = {
                        "count": len(latencies),
                        "min_ms": round(min(latencies), 2),
                        "max_ms": round(max(latencies), 2),
                        "avg_ms": round(sum(latencies) / len(latencies), 2),
                    }
            summary["api_latencies"] = latency_stats

        if self.error_message:
            summary["error_message"] = self.error_message

        return summary


@asynccontextmanager
async def track_api_call(
    metrics: Optional[ReviewMetrics],
    service: str,
    logger_adapter,
    endpoint: str = "",
    method: str = ""
):
    """
    Context manager to time an outbound API call.

    Usage:
        async with track_api_call(metrics, "openai", logger, endpoint="chat.completions", method="POST"):
            response = await client.chat.completions.create(...)

    Args:
        metrics: Metrics collector (optional)
        service: Service name
        logger_adapter: Logger for logging API calls
        endpoint: Endpoint being called
        method: HTTP method
    """
    start_time = time.time()
    error = None

    try:
        yield
    except Exception as e:
        error = e
        raise
    finally:
        duration_ms = (time.time() - start_time) * 1000

        if metrics:
            metrics.record_api_call(service, duration_ms)

        log_api_call(
            logger_adapter,
            service=service,
            endpoint=endpoint,
            method=method,
            duration_ms=duration_ms,
            error=str(error) if error else None
        )


def emit_metric(metric_name: str, value: float, **tags: Any) -> None:
    """
    Emit a metric by logging it.

    Args:
        metric_name: Metric name
        value: Metric value
        **tags: Metric tags/labels
    """
    logger.info(
        f"Metric: {metric_name}",
        extra={
            "metric_name": metric_name,
            "metric_value": value,
            "metric_tags": tags,
        }
    )
