"""Unit tests for the Bitbucket proxy API endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest

pytest.importorskip("fastapi")

from fastapi.testclient import TestClient

from bitbucket_reviewer.api.dependencies import get_bitbucket_client
from bitbucket_reviewer.main import app
from bitbucket_reviewer.models.api_response import Pagination
from bitbucket_reviewer.services.bitbucket_client import (
    BitbucketAuthError,
    BitbucketError,
    BitbucketNotFoundError,
    BitbucketRateLimitError,
)


DIFF = """diff --git a/src/app.py b/src/app.py
--- a/src/app.py
+++ b/src/app.py
@@ -3,2 +3,2 @@
-import os
+import sys
 print("hi")
diff --git a/poetry.lock b/poetry.lock
--- a/poetry.lock
+++ b/poetry.lock
@@ -1 +1 @@
-a
+b
"""


@pytest.fixture
def mock_bitbucket_client():
    """Create a mock Bitbucket client."""
    return MagicMock()


@pytest.fixture
def client(mock_bitbucket_client):
    """Create test client with the Bitbucket client dependency overridden."""
    app.dependency_overrides[get_bitbucket_client] = lambda: mock_bitbucket_client
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_missing_token_rejected():
    """Test that requests without a bearer token are rejected."""
    response = TestClient(app).get("/api/bitbucket/user")

    assert response.status_code == 401
    assert response.json()["detail"] == "Access token required"


def test_get_user(client, mock_bitbucket_client):
    """Test fetching the current user."""
    mock_bitbucket_client.get_current_user = AsyncMock(return_value={"username": "dev"})

    response = client.get("/api/bitbucket/user")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["data"] == {"username": "dev"}


def test_list_repositories(client, mock_bitbucket_client):
    """Test repository listing with pagination."""
    mock_bitbucket_client.list_repositories = AsyncMock(return_value=(
        [{"full_name": "team/api"}],
        Pagination(page=2, pagelen=5, size=6, previous="https://api.bitbucket.org/2.0/repositories?page=1"),
    ))

    response = client.get("/api/bitbucket/repositories?page=2&pagelen=5")

    assert response.status_code == 200
    data = response.json()
    assert data["data"] == [{"full_name": "team/api"}]
    assert data["pagination"]["page"] == 2
    assert data["pagination"]["size"] == 6
    assert data["pagination"]["next"] is None
    mock_bitbucket_client.list_repositories.assert_awaited_once_with(page=2, pagelen=5)


def test_list_pull_requests(client, mock_bitbucket_client):
    """Test pull request listing for one repository."""
    mock_bitbucket_client.list_pull_requests = AsyncMock(return_value=(
        [{"id": 7}], Pagination(page=1, pagelen=20, size=1),
    ))

    response = client.get("/api/bitbucket/pullrequests?repository=team/api")

    assert response.status_code == 200
    assert response.json()["data"] == [{"id": 7}]
    mock_bitbucket_client.list_pull_requests.assert_awaited_once_with(repository="team/api", page=1, pagelen=20)


def test_list_pull_requests_rate_limited(client, mock_bitbucket_client):
    """Test that rate limiting maps to 429."""
    mock_bitbucket_client.list_pull_requests = AsyncMock(
        side_effect=BitbucketRateLimitError("Rate limit exceeded. Please try again later.", 429)
    )

    response = client.get("/api/bitbucket/pullrequests")

    assert response.status_code == 429
    assert response.json()["detail"] == "Rate limit exceeded. Please try again later."


def test_get_pull_request(client, mock_bitbucket_client):
    """Test fetching PR details by workspace, slug and id."""
    mock_bitbucket_client.get_pull_request = AsyncMock(return_value={"id": 42, "title": "Add login"})

    response = client.get("/api/bitbucket/pullrequests/team/api/42")

    assert response.status_code == 200
    assert response.json()["data"]["title"] == "Add login"
    mock_bitbucket_client.get_pull_request.assert_awaited_once_with("team/api", "42")


def test_get_pull_request_diff(client, mock_bitbucket_client):
    """Test fetching the raw diff."""
    mock_bitbucket_client.get_pull_request_diff = AsyncMock(return_value=DIFF)

    response = client.get("/api/bitbucket/pullrequests/team/api/42/diff")

    assert response.status_code == 200
    assert response.json()["data"] == DIFF


def test_get_pull_request_files(client, mock_bitbucket_client):
    """Test the per-file view with on-screen line numbers."""
    mock_bitbucket_client.get_pull_request_diff = AsyncMock(return_value=DIFF)

    response = client.get("/api/bitbucket/pullrequests/team/api/42/files")

    assert response.status_code == 200
    files = response.json()["data"]
    assert [f["path"] for f in files] == ["src/app.py", "poetry.lock"]

    app_file = files[0]
    assert app_file["changeType"] == "modified"
    assert app_file["includedInReview"] is True
    numbered = {line["content"]: line["lineNumber"] for line in app_file["lines"] if line["lineNumber"]}
    assert numbered == {"+import sys": 3, ' print("hi")': 4}

    assert files[1]["includedInReview"] is False


@pytest.mark.parametrize("error,status_code", [
    (BitbucketAuthError("Bitbucket API returned 401: Unauthorized", 401), 401),
    (BitbucketNotFoundError("Bitbucket API returned 404: Not Found", 404), 404),
    (BitbucketError("Bitbucket request failed: connection refused"), 502),
])
def test_error_mapping(client, mock_bitbucket_client, error, status_code):
    """Test that Bitbucket errors map to HTTP errors."""
    mock_bitbucket_client.get_pull_request = AsyncMock(side_effect=error)

    response = client.get("/api/bitbucket/pullrequests/team/api/42")

    assert response.status_code == status_code
    assert response.json()["detail"] == str(error)


def test_unexpected_error(client, mock_bitbucket_client):
    """Test that unexpected errors return 500."""
    mock_bitbucket_client.get_current_user = AsyncMock(side_effect=KeyError("values"))

    response = client.get("/api/bitbucket/user")

    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error"
