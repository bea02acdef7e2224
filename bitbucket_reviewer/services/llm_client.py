"""
Client for the text-generation service (Azure OpenAI or OpenAI chat completions).
"""

from typing import Any, Dict, Optional

from openai import AsyncAzureOpenAI, AsyncOpenAI, OpenAIError

from bitbucket_reviewer.utils.logging import get_logger

logger = get_logger(__name__)


class LLMClientError(Exception):
    """Base exception for text-generation errors."""
    pass


class LLMNotConfiguredError(LLMClientError):
    """No credentials for any text-generation provider."""
    pass


class LLMClient:
    """Wrapper for the OpenAI/Azure OpenAI chat completion API."""

    def __init__(self, settings=None, client: Optional[Any] = None):
        """
        Initialize LLM client based on configuration.

        Azure OpenAI is used when its endpoint and key are set, plain OpenAI
        when only an OpenAI key is set. Requests are never retried.

        Args:
            settings: Application settings (defaults to the global settings)
            client: Optional pre-built async OpenAI-compatible client
        """
        if settings is None:
            from bitbucket_reviewer.config import settings as app_settings
            settings = app_settings

        self.max_tokens = settings.llm_max_tokens
        self.temperature = settings.llm_temperature
        self.client: Optional[Any] = None
        self.model: Optional[str] = None
        self.provider: Optional[str] = None

        if client is not None:
            self.client = client
            self.model = settings.azure_openai_deployment or settings.openai_model
            self.provider = "custom"
        elif settings.azure_openai_endpoint and settings.azure_openai_api_key:
            self.client = AsyncAzureOpenAI(
                api_key=settings.azure_openai_api_key,
                api_version=settings.azure_openai_api_version,
                azure_endpoint=settings.azure_openai_endpoint,
                max_retries=0,
            )
            self.model = settings.azure_openai_deployment or "gpt-4o"
            self.provider = "azure_openai"
            logger.info("Initialized Azure OpenAI client")
        elif settings.openai_api_key:
            self.client = AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0)
            self.model = settings.openai_model
            self.provider = "openai"
            logger.info("Initialized OpenAI client")
        else:
            logger.warning("No text-generation credentials configured; reviews will use the fallback result")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def describe(self) -> Dict[str, Any]:
        """Configuration summary for health reporting."""
        return {
            "configured": self.is_configured,
            "provider": self.provider,
            "deployment": self.model if self.is_configured else "Not configured",
        }

    async def complete(self, prompt: str) -> str:
        """
        Send a prompt as a single user message and return the reply text.

        Args:
            prompt: Prompt text

        Returns:
            Raw completion text

        Raises:
            LLMNotConfiguredError: If no provider is configured
            LLMClientError: If the call fails or returns no content
        """
        if not self.is_configured:
            raise LLMNotConfiguredError("Text-generation service is not configured")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except OpenAIError as e:
            logger.error(f"Text-generation call failed: {e}")
            raise LLMClientError(f"Text-generation call failed: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise LLMClientError("Text-generation service returned an empty completion")

        return response.choices[0].message.content
