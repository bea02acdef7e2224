"""
Bitbucket proxy REST API endpoints.

Every endpoint acts with the caller's bearer token and wraps the Bitbucket
payload in the {success, data} envelope.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from bitbucket_reviewer.analyzers.diff_annotator import split_file_sections
from bitbucket_reviewer.api.dependencies import bitbucket_http_exception, get_bitbucket_client
from bitbucket_reviewer.api.file_diffs import build_file_diffs
from bitbucket_reviewer.models.api_response import ApiResponse, PaginatedResponse
from bitbucket_reviewer.services.bitbucket_client import BitbucketClient, BitbucketError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bitbucket", tags=["bitbucket"])


@router.get("/user", response_model=ApiResponse)
async def get_user(client: BitbucketClient = Depends(get_bitbucket_client)) -> ApiResponse:
    """Get the Bitbucket account of the caller."""
    try:
        user = await client.get_current_user()
        return ApiResponse(success=True, data=user)
    except BitbucketError as e:
        raise bitbucket_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching user info: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/repositories", response_model=PaginatedResponse)
async def list_repositories(
    page: int = Query(1, ge=1),
    pagelen: int = Query(20, ge=1, le=100),
    client: BitbucketClient = Depends(get_bitbucket_client),
) -> PaginatedResponse:
    """List repositories the caller is a member of."""
    try:
        repositories, pagination = await client.list_repositories(page=page, pagelen=pagelen)
        return PaginatedResponse(success=True, data=repositories, pagination=pagination)
    except BitbucketError as e:
        raise bitbucket_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching repositories: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/pullrequests", response_model=PaginatedResponse)
async def list_pull_requests(
    repository: Optional[str] = None,
    page: int = Query(1, ge=1),
    pagelen: int = Query(20, ge=1, le=100),
    client: BitbucketClient = Depends(get_bitbucket_client),
) -> PaginatedResponse:
    """
    List open pull requests.

    Args:
        repository: Repository full name; omitted or "all" lists every member repository
        page: 1-based page number
        pagelen: Page size
        client: Bitbucket client bound to the caller's token

    Returns:
        Page of pull requests with pagination details
    """
    try:
        pull_requests, pagination = await client.list_pull_requests(
            repository=repository, page=page, pagelen=pagelen
        )
        return PaginatedResponse(success=True, data=pull_requests, pagination=pagination)
    except BitbucketError as e:
        raise bitbucket_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching pull requests: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/pullrequests/{workspace}/{repo_slug}/{pr_id}", response_model=ApiResponse)
async def get_pull_request(
    workspace: str,
    repo_slug: str,
    pr_id: str,
    client: BitbucketClient = Depends(get_bitbucket_client),
) -> ApiResponse:
    """Get details of one pull request."""
    try:
        pull_request = await client.get_pull_request(f"{workspace}/{repo_slug}", pr_id)
        return ApiResponse(success=True, data=pull_request)
    except BitbucketError as e:
        raise bitbucket_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching PR details: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/pullrequests/{workspace}/{repo_slug}/{pr_id}/diff", response_model=ApiResponse)
async def get_pull_request_diff(
    workspace: str,
    repo_slug: str,
    pr_id: str,
    client: BitbucketClient = Depends(get_bitbucket_client),
) -> ApiResponse:
    """Get the raw unified diff of a pull request."""
    try:
        diff_text = await client.get_pull_request_diff(f"{workspace}/{repo_slug}", pr_id)
        return ApiResponse(success=True, data=diff_text)
    except BitbucketError as e:
        raise bitbucket_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching PR diff: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/pullrequests/{workspace}/{repo_slug}/{pr_id}/files", response_model=ApiResponse)
async def get_pull_request_files(
    workspace: str,
    repo_slug: str,
    pr_id: str,
    client: BitbucketClient = Depends(get_bitbucket_client),
) -> ApiResponse:
    """
    Get the files of a pull request with on-screen line numbers.

    Numbers come from the same scan as the reviewer's [LINE n] markers, so
    review comments can be matched to these lines directly.
    """
    try:
        diff_text = await client.get_pull_request_diff(f"{workspace}/{repo_slug}", pr_id)
        files = build_file_diffs(split_file_sections(diff_text))
        return ApiResponse(success=True, data=[f.model_dump(mode="json", by_alias=True) for f in files])
    except BitbucketError as e:
        raise bitbucket_http_exception(e)
    except Exception as e:
        logger.error(f"Error building PR file view: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
