"""
Unit tests for structured logging utilities.
"""

import json
import logging
from io import StringIO

import pytest

from bitbucket_reviewer.utils.logging import (
    JSONFormatter,
    get_logger,
    log_api_call,
    log_error_with_context,
    log_review_phase,
    setup_logging,
)


def capture(logger, level=logging.INFO):
    """Attach a JSON handler to the adapter's logger and return its stream."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.logger.addHandler(handler)
    logger.logger.setLevel(level)
    return stream


def test_json_formatter():
    """Test JSON formatter produces valid JSON output."""
    # Create formatter
    formatter = JSONFormatter()

    # Create log record
    logger = logging.getLogger("test")
    logger.setLevel(logging.INFO)

    # Create string buffer to capture output
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Log a message
    logger.info("Test message", extra={"repository": "team/web", "pr_id": "42", "attempt": 1})

    # Parse JSON
    log_data = json.loads(stream.getvalue())

    # Verify structure
    assert "timestamp" in log_data
    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test"
    assert log_data["message"] == "Test message"
    assert log_data["repository"] == "team/web"
    assert log_data["pr_id"] == "42"
    assert log_data["context"] == {"attempt": 1}
    assert "source" in log_data

    logger.removeHandler(handler)


def test_get_logger_with_context():
    """Test getting logger with context."""
    logger = get_logger("test_module", repository="team/web", pr_id="42")

    assert logger.extra["repository"] == "team/web"
    assert logger.extra["pr_id"] == "42"


def test_call_extra_overrides_context():
    """Test that per-call extra wins over adapter context."""
    logger = get_logger("test_override", pr_id="1")
    stream = capture(logger)

    logger.info("Override", extra={"pr_id": "2"})

    assert json.loads(stream.getvalue())["pr_id"] == "2"


def test_with_context():
    """Test deriving an adapter with extra context."""
    logger = get_logger("test_derive", repository="team/web")
    derived = logger.with_context(pr_id="42")

    assert derived.extra == {"repository": "team/web", "pr_id": "42"}
    assert logger.extra == {"repository": "team/web"}


def test_log_review_phase():
    """Test review phase logging."""
    logger = get_logger("test_phase")
    stream = capture(logger)

    log_review_phase(logger, repository="team/web", pr_id="42", phase="fetch_diff", status="started")

    log_data = json.loads(stream.getvalue())
    assert log_data["message"] == "Review phase started: fetch_diff"
    assert log_data["repository"] == "team/web"
    assert log_data["pr_id"] == "42"
    assert log_data["phase"] == "fetch_diff"
    assert "status" in log_data["context"]


def test_log_api_call():
    """Test API call logging."""
    logger = get_logger("test_api")
    stream = capture(logger)

    log_api_call(
        logger,
        service="bitbucket",
        endpoint="/repositories/team/web/pullrequests/42/diff",
        method="GET",
        status_code=200,
        duration_ms=150.456
    )

    log_data = json.loads(stream.getvalue())
    assert log_data["level"] == "INFO"
    assert log_data["context"]["service"] == "bitbucket"
    assert log_data["context"]["status_code"] == 200
    assert log_data["context"]["duration_ms"] == 150.46


def test_log_api_call_with_error():
    """Test API call logging with error."""
    logger = get_logger("test_api_error")
    stream = capture(logger, logging.ERROR)

    log_api_call(
        logger,
        service="openai",
        endpoint="chat.completions",
        method="POST",
        error="Connection timeout"
    )

    log_data = json.loads(stream.getvalue())
    assert log_data["level"] == "ERROR"
    assert log_data["message"] == "API call failed: POST chat.completions"
    assert log_data["context"]["error"] == "Connection timeout"


def test_log_error_with_context():
    """Test error logging includes exception details."""
    logger = get_logger("test_error")
    stream = capture(logger)

    try:
        raise ValueError("bad diff")
    except ValueError as e:
        log_error_with_context(logger, "Annotation failed", e, repository="team/web")

    log_data = json.loads(stream.getvalue())
    assert log_data["message"] == "Annotation failed: bad diff"
    assert log_data["repository"] == "team/web"
    assert log_data["error"]["type"] == "ValueError"
    assert "bad diff" in log_data["error"]["stack_trace"]


def test_setup_logging_quiets_client_libraries():
    """Test that setup installs one JSON handler and quiets HTTP clients."""
    setup_logging("DEBUG")

    root_logger = logging.getLogger()
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("openai").level == logging.WARNING

    setup_logging("INFO")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
