"""Collaborator clients and the review orchestrator."""

from bitbucket_reviewer.services.bitbucket_client import (
    BitbucketAuthError,
    BitbucketClient,
    BitbucketError,
    BitbucketNotFoundError,
    BitbucketRateLimitError,
)
from bitbucket_reviewer.services.llm_client import LLMClient, LLMClientError, LLMNotConfiguredError
from bitbucket_reviewer.services.review_orchestrator import ReviewOrchestrator

__all__ = [
    "BitbucketAuthError",
    "BitbucketClient",
    "BitbucketError",
    "BitbucketNotFoundError",
    "BitbucketRateLimitError",
    "LLMClient",
    "LLMClientError",
    "LLMNotConfiguredError",
    "ReviewOrchestrator",
]
