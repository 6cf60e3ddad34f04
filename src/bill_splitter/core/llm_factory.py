import os
from enum import Enum
from typing import Dict
from loguru import logger
from openai import AsyncAzureOpenAI, AsyncOpenAI
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from .errors import ConfigurationError


class LLMProviderType(Enum):
    AZURE_OPENAI = "azure_openai"
    OPENAI = "openai"


# Env vars holding the connection details of each vision-capable model
MODEL_CONFIG = {
    LLMProviderType.AZURE_OPENAI: {
        "gpt-4o": {
            "endpoint_env": "AZURE_OPENAI_URL",
            "key_env": "AZURE_OPENAI_4O_API_KEY",
            "version_env": "AZURE_OPENAI_4O_API_VERSION",
            "default_version": "2024-12-01-preview",
            "deployment_name": "gpt-4o",
        },
    },
    LLMProviderType.OPENAI: {
        "gpt-4o": {"key_env": "OPENAI_API_KEY", "model_name": "gpt-4o"},
        "gpt-4o-mini": {"key_env": "OPENAI_API_KEY", "model_name": "gpt-4o-mini"},
    },
}

_client_cache: Dict[str, object] = {}  # cache for OpenAI clients
_model_cache: Dict[str, OpenAIChatModel] = {}  # cache for LLM models


def _get_azure_client(endpoint: str, api_key: str, api_version: str) -> AsyncAzureOpenAI:
    """Creates or retrieves a cached AsyncAzureOpenAI client."""
    client_key = f"azure:{endpoint}:{api_version}"
    if client_key not in _client_cache:
        logger.info(f"Creating new AsyncAzureOpenAI client for endpoint: {endpoint}")
        _client_cache[client_key] = AsyncAzureOpenAI(
            azure_endpoint=endpoint,
            api_key=api_key,
            api_version=api_version,
        )
    return _client_cache[client_key]


def _get_openai_client(api_key: str) -> AsyncOpenAI:
    client_key = "openai"
    if client_key not in _client_cache:
        logger.info("Creating new AsyncOpenAI client")
        _client_cache[client_key] = AsyncOpenAI(api_key=api_key)
    return _client_cache[client_key]


def get_model(
        model_name: str,
        provider_type: LLMProviderType = LLMProviderType.AZURE_OPENAI,
        **kwargs,
) -> OpenAIChatModel:
    """Retrieves a model based on the provided model name and provider type.

    Args:
        model_name (str): Logical name of the model. Must be a key of MODEL_CONFIG[provider_type].
        provider_type (LLMProviderType): The LLM provider to use.
        **kwargs: Additional arguments for the model.

    Raises:
        ConfigurationError: unknown model or missing credentials."""

    if not isinstance(provider_type, LLMProviderType):
        raise ConfigurationError("provider_type must be an instance of LLMProviderType.")

    cache_key = f"{provider_type.value}:{model_name}"
    if cache_key in _model_cache:
        return _model_cache[cache_key]

    provider_config = MODEL_CONFIG.get(provider_type, {})
    if model_name not in provider_config:
        raise ConfigurationError(f"Model {model_name} not configured for provider {provider_type.value}.")
    config = provider_config[model_name]

    api_key = os.getenv(config["key_env"])
    if provider_type == LLMProviderType.AZURE_OPENAI:
        endpoint = os.getenv(config["endpoint_env"])
        api_version = os.getenv(config["version_env"], config["default_version"])
        if not endpoint or not api_key:
            raise ConfigurationError("Endpoint or API key are missing, both must be provided.")
        client = _get_azure_client(endpoint=endpoint, api_key=api_key, api_version=api_version)
        remote_name = config["deployment_name"]
    else:
        if not api_key:
            raise ConfigurationError(f"{config['key_env']} is not set.")
        client = _get_openai_client(api_key)
        remote_name = config["model_name"]

    model_instance = OpenAIChatModel(
        remote_name, provider=OpenAIProvider(openai_client=client), **kwargs
    )
    _model_cache[cache_key] = model_instance
    logger.info(f"Created and cached model instance for {cache_key}")
    return model_instance
