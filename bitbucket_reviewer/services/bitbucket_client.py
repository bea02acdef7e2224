"""
Bitbucket Cloud REST API client.

This module provides functionality to retrieve the signed-in user,
repositories, pull requests and pull request diffs from Bitbucket using a
caller-supplied OAuth bearer token.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional, Tuple

import httpx

from bitbucket_reviewer.models.api_response import Pagination
from bitbucket_reviewer.utils.logging import get_logger, log_api_call

logger = get_logger(__name__)


class BitbucketError(Exception):
    """Base exception for Bitbucket API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BitbucketAuthError(BitbucketError):
    """Missing, invalid or insufficient credentials."""
    pass


class BitbucketNotFoundError(BitbucketError):
    """Repository or pull request does not exist or is not visible."""
    pass


class BitbucketRateLimitError(BitbucketError):
    """Too many requests to the Bitbucket API."""
    pass


class BitbucketClient:
    """
    Async client for the Bitbucket Cloud 2.0 API.

    One instance serves one caller token. Use it as an async context manager
    so the underlying HTTP client is closed.
    """

    def __init__(
        self,
        access_token: str,
        settings=None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Bitbucket client.

        Args:
            access_token: OAuth bearer token of the caller
            settings: Application settings (defaults to the global settings)
            http_client: Optional pre-built httpx client
        """
        if settings is None:
            from bitbucket_reviewer.config import settings as app_settings
            settings = app_settings

        self.access_token = access_token
        self.base_url = settings.bitbucket_api_base_url.rstrip("/")
        self.request_delay = settings.bitbucket_request_delay_seconds
        self.all_repositories_pagelen = settings.bitbucket_all_repositories_pagelen

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()

    async def __aenter__(self) -> "BitbucketClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def _error_for(response: httpx.Response) -> BitbucketError:
        detail = response.reason_phrase or "request failed"
        try:
            body = response.json()
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                detail = body["error"].get("message") or detail
        except ValueError:
            pass

        status = response.status_code
        message = f"Bitbucket API returned {status}: {detail}"

        if status in (401, 403):
            return BitbucketAuthError(message, status)
        if status == 404:
            return BitbucketNotFoundError(message, status)
        if status == 429:
            return BitbucketRateLimitError("Rate limit exceeded. Please try again later.", status)
        return BitbucketError(message, status)

    async def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        accept: Optional[str] = None,
    ) -> httpx.Response:
        """
        Issue an authenticated GET request.

        Args:
            path: API path below the base URL
            params: Query parameters
            accept: Optional Accept header

        Returns:
            Successful response

        Raises:
            BitbucketAuthError: If the token is missing or rejected
            BitbucketNotFoundError: If the resource does not exist
            BitbucketRateLimitError: If Bitbucket throttles the request
            BitbucketError: On any other HTTP or transport failure
        """
        if not self.access_token:
            raise BitbucketAuthError("Access token required", 401)

        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.access_token}"}
        if accept:
            headers["Accept"] = accept

        start_time = time.time()
        try:
            response = await self._client.get(url, headers=headers, params=params, follow_redirects=True)
        except httpx.HTTPError as e:
            duration_ms = (time.time() - start_time) * 1000
            log_api_call(logger, service="bitbucket", endpoint=path, method="GET",
                         duration_ms=duration_ms, error=str(e))
            raise BitbucketError(f"Bitbucket request failed: {e}") from e

        duration_ms = (time.time() - start_time) * 1000

        if response.is_error:
            error = self._error_for(response)
            log_api_call(logger, service="bitbucket", endpoint=path, method="GET",
                         status_code=response.status_code, duration_ms=duration_ms, error=str(error))
            raise error

        log_api_call(logger, service="bitbucket", endpoint=path, method="GET",
                     status_code=response.status_code, duration_ms=duration_ms)
        return response

    async def get_current_user(self) -> Dict[str, Any]:
        """Retrieve the account the token belongs to."""
        response = await self._get("/user")
        return response.json()

    async def list_repositories(self, page: int = 1, pagelen: int = 20) -> Tuple[List[Dict[str, Any]], Pagination]:
        """
        List repositories the caller is a member of.

        Args:
            page: 1-based page number
            pagelen: Page size

        Returns:
            Tuple of (repositories, pagination)
        """
        response = await self._get(
            "/repositories",
            params={"role": "member", "pagelen": pagelen, "page": page},
        )
        body = response.json()
        return body.get("values") or [], Pagination(
            page=page,
            pagelen=pagelen,
            size=body.get("size") or 0,
            next=body.get("next"),
            previous=body.get("previous"),
        )

    async def list_pull_requests(
        self,
        repository: Optional[str] = None,
        page: int = 1,
        pagelen: int = 20,
    ) -> Tuple[List[Dict[str, Any]], Pagination]:
        """
        List open pull requests.

        With a repository, pages through that repository's open pull
        requests. Without one (or with "all"), collects the open pull requests
        of every member repository one after another and paginates the
        combined list in memory. Repositories that fail are skipped.

        Args:
            repository: Repository full name ("workspace/slug"), "all" or None
            page: 1-based page number
            pagelen: Page size

        Returns:
            Tuple of (pull requests, pagination)
        """
        if repository and repository != "all":
            response = await self._get(
                f"/repositories/{repository}/pullrequests",
                params={"state": "OPEN", "pagelen": pagelen, "page": page},
            )
            body = response.json()
            return body.get("values") or [], Pagination(
                page=page,
                pagelen=pagelen,
                size=body.get("size") or 0,
                next=body.get("next"),
                previous=body.get("previous"),
            )

        repos_response = await self._get(
            "/repositories",
            params={"role": "member", "pagelen": self.all_repositories_pagelen},
        )
        repositories = repos_response.json().get("values") or []

        all_pull_requests: List[Dict[str, Any]] = []
        for repo in repositories:
            full_name = repo.get("full_name")
            if not full_name:
                continue
            try:
                prs_response = await self._get(
                    f"/repositories/{full_name}/pullrequests",
                    params={"state": "OPEN", "pagelen": 20},
                )
                all_pull_requests.extend(prs_response.json().get("values") or [])
            except BitbucketError as e:
                logger.warning(f"Failed to fetch PRs from {full_name}: {e}")
                continue

            # Spread requests out to stay under the rate limit
            await asyncio.sleep(self.request_delay)

        start_index = (page - 1) * pagelen
        end_index = start_index + pagelen
        total = len(all_pull_requests)

        return all_pull_requests[start_index:end_index], Pagination(
            page=page,
            pagelen=pagelen,
            size=total,
            next=page + 1 if end_index < total else None,
            previous=page - 1 if page > 1 else None,
        )

    async def get_pull_request(self, repository: str, pr_id: str) -> Dict[str, Any]:
        """Retrieve details of one pull request."""
        logger.info(f"Fetching PR details for: {repository}/{pr_id}")
        response = await self._get(f"/repositories/{repository}/pullrequests/{pr_id}")
        return response.json()

    async def get_pull_request_diff(self, repository: str, pr_id: str) -> str:
        """
        Retrieve the unified diff of a pull request.

        Args:
            repository: Repository full name ("workspace/slug")
            pr_id: Pull request ID

        Returns:
            Unified diff text
        """
        logger.info(f"Fetching diff for repository: {repository}, PR: {pr_id}")
        response = await self._get(
            f"/repositories/{repository}/pullrequests/{pr_id}/diff",
            accept="text/plain",
        )
        return response.text
