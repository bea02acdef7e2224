"""
Shared request dependencies and error mapping for the API routers.
"""

import logging
from typing import AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException

from bitbucket_reviewer.services.bitbucket_client import (
    BitbucketAuthError,
    BitbucketClient,
    BitbucketError,
    BitbucketNotFoundError,
    BitbucketRateLimitError,
)

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


async def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """
    Extract the Bitbucket access token from the Authorization header.

    Args:
        authorization: Authorization header value

    Returns:
        Bearer token

    Raises:
        HTTPException: If the header is missing or not a bearer token
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="Access token required")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Access token required")

    return token


async def get_bitbucket_client(access_token: str = Depends(get_bearer_token)) -> AsyncIterator[BitbucketClient]:
    """Bitbucket client bound to the caller's token, closed after the request."""
    async with BitbucketClient(access_token) as client:
        yield client


def bitbucket_http_exception(error: BitbucketError) -> HTTPException:
    """Map a Bitbucket error to the HTTP error returned to the caller."""
    if isinstance(error, BitbucketAuthError):
        status_code = 401
    elif isinstance(error, BitbucketNotFoundError):
        status_code = 404
    elif isinstance(error, BitbucketRateLimitError):
        status_code = 429
    else:
        status_code = 502

    logger.warning(f"Bitbucket request failed ({status_code}): {error}")
    return HTTPException(status_code=status_code, detail=str(error))
