"""LLM transports and response parsing."""

from .json_utils import coerce_suggestion_array, parse_json_response, parse_suggestions
from .provider import (
    LLMProvider,
    LLMProviderConfigurationError,
    LLMProviderError,
    TransportFailure,
    TransportResult,
    classify_status,
)
from .provider_registry import available_providers, create_provider

__all__ = [
    "LLMProvider",
    "LLMProviderConfigurationError",
    "LLMProviderError",
    "TransportFailure",
    "TransportResult",
    "available_providers",
    "classify_status",
    "coerce_suggestion_array",
    "create_provider",
    "parse_json_response",
    "parse_suggestions",
]
