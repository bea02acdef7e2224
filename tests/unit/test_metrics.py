"""
Unit tests for metrics collection utilities.
"""

import pytest
from datetime import datetime
from unittest.mock import MagicMock

from bitbucket_reviewer.utils.metrics import ReviewMetrics, emit_metric, track_api_call


def test_review_metrics_initialization():
    """Test metrics collector initialization."""
    metrics = ReviewMetrics(repository="team/web", pr_id="42")

    assert metrics.repository == "team/web"
    assert metrics.pr_id == "42"
    assert metrics.status == "running"
    assert metrics.files_reviewed == 0
    assert metrics.comments_count == 0
    assert metrics.fallback_used is False


def test_review_metrics_start():
    """Test starting metrics collection."""
    metrics = ReviewMetrics("team/web", "42")

    metrics.start()

    assert metrics.start_time is not None
    assert isinstance(metrics.start_time, datetime)
    assert metrics.status == "running"


def test_review_metrics_complete():
    """Test completing metrics collection."""
    metrics = ReviewMetrics("team/web", "42")

    metrics.start()
    metrics.complete(status="completed")

    assert metrics.end_time is not None
    assert metrics.status == "completed"
    assert metrics.duration_ms is not None
    assert metrics.duration_ms >= 0


def test_review_metrics_complete_with_error():
    """Test completing metrics collection with error."""
    metrics = ReviewMetrics("team/web", "42")

    metrics.start()
    metrics.complete(status="failed", error_message="Bitbucket API returned 404: Not Found")

    assert metrics.status == "failed"
    assert metrics.error_message == "Bitbucket API returned 404: Not Found"


def test_review_metrics_record_counts():
    """Test recording reviewed files, comments and fallback use."""
    metrics = ReviewMetrics("team/web", "42")

    metrics.record_files_reviewed(3)
    metrics.record_comments(7)
    metrics.record_fallback()

    assert metrics.files_reviewed == 3
    assert metrics.comments_count == 7
    assert metrics.fallback_used is True


def test_review_metrics_record_api_call():
    """Test recording API call metrics."""
    metrics = ReviewMetrics("team/web", "42")

    metrics.record_api_call("bitbucket", 150.5)
    metrics.record_api_call("bitbucket", 200.0)
    metrics.record_api_call("openai", 500.0)

    assert metrics.api_calls["bitbucket"] == 2
    assert metrics.api_calls["openai"] == 1
    assert len(metrics.api_latencies["bitbucket"]) == 2
    assert len(metrics.api_latencies["openai"]) == 1


def test_review_metrics_get_summary():
    """Test getting metrics summary."""
    metrics = ReviewMetrics("team/web", "42")

    metrics.start()
    metrics.record_files_reviewed(3)
    metrics.record_comments(5)
    metrics.record_api_call("bitbucket", 150.0)
    metrics.record_api_call("bitbucket", 200.0)
    metrics.complete(status="completed")

    summary = metrics.get_metrics_summary()

    assert summary["repository"] == "team/web"
    assert summary["pr_id"] == "42"
    assert summary["status"] == "completed"
    assert summary["files_reviewed"] == 3
    assert summary["comments_count"] == 5
    assert summary["fallback_used"] is False
    assert summary["duration_ms"] is not None
    assert summary["api_latencies"]["bitbucket"]["count"] == 2
    assert summary["api_latencies"]["bitbucket"]["avg_ms"] == 175.0
    assert "error_message" not in summary


@pytest.mark.asyncio
async def test_track_api_call_records_latency():
    """Test that tracked calls are counted."""
    metrics = ReviewMetrics("team/web", "42")
    logger = MagicMock()

    async with track_api_call(metrics, "openai", logger, endpoint="chat.completions", method="POST"):
        pass

    assert metrics.api_calls["openai"] == 1
    logger.info.assert_called_once()


@pytest.mark.asyncio
async def test_track_api_call_reraises():
    """Test that failures are logged, counted and re-raised."""
    metrics = ReviewMetrics("team/web", "42")
    logger = MagicMock()

    with pytest.raises(RuntimeError):
        async with track_api_call(metrics, "openai", logger, endpoint="chat.completions", method="POST"):
            raise RuntimeError("timeout")

    assert metrics.api_calls["openai"] == 1
    logger.error.assert_called_once()


def test_emit_metric():
    """Test emitting a metric."""
    # This should not raise an exception
    emit_metric("review_duration_ms", 1234.0, repository="team/web")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
