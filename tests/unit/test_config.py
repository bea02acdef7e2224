"""
Unit tests for configuration management.
"""

import pytest
from unittest.mock import patch
import os


def test_settings_loads_from_environment():
    """Test that settings can be loaded from environment variables."""
    with patch.dict(os.environ, {
        'AZURE_OPENAI_ENDPOINT': 'https://example.openai.azure.com',
        'AZURE_OPENAI_API_KEY': 'test_key',
        'AZURE_OPENAI_DEPLOYMENT': 'review-gpt4o',
        'BITBUCKET_API_BASE_URL': 'https://bitbucket.example.com/2.0',
        'LLM_MAX_TOKENS': '2000',
        'LOG_LEVEL': 'DEBUG',
        'ENVIRONMENT': 'production',
        'FRONTEND_ORIGINS': '["https://review.example.com"]',
    }):
        from bitbucket_reviewer.config import Settings
        settings = Settings(_env_file=None)

        assert settings.azure_openai_endpoint == 'https://example.openai.azure.com'
        assert settings.azure_openai_api_key == 'test_key'
        assert settings.azure_openai_deployment == 'review-gpt4o'
        assert settings.bitbucket_api_base_url == 'https://bitbucket.example.com/2.0'
        assert settings.llm_max_tokens == 2000
        assert settings.log_level == 'DEBUG'
        assert settings.environment == 'production'
        assert settings.frontend_origins == ['https://review.example.com']


def test_settings_has_default_values():
    """Test that settings have appropriate default values."""
    with patch.dict(os.environ, {}, clear=True):
        from bitbucket_reviewer.config import Settings
        settings = Settings(_env_file=None)

        assert settings.azure_openai_endpoint is None
        assert settings.openai_api_key is None
        assert settings.azure_openai_api_version == '2024-02-01'
        assert settings.llm_max_tokens == 4000
        assert settings.llm_temperature == 0.1
        assert settings.bitbucket_api_base_url == 'https://api.bitbucket.org/2.0'
        assert settings.log_level == 'INFO'
        assert settings.environment == 'development'
        assert settings.port == 5000


def test_settings_case_insensitive():
    """Test that environment variable names are case-insensitive."""
    with patch.dict(os.environ, {'openai_api_key': 'lower_key'}, clear=True):
        from bitbucket_reviewer.config import Settings
        settings = Settings(_env_file=None)

        assert settings.openai_api_key == 'lower_key'


def test_settings_explicit_values_win():
    """Test that constructor arguments override the environment."""
    with patch.dict(os.environ, {'LLM_TEMPERATURE': '0.7'}):
        from bitbucket_reviewer.config import Settings
        settings = Settings(_env_file=None, llm_temperature=0.2)

        assert settings.llm_temperature == 0.2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
