"""Model providers."""

from .base import Provider
from .litellm_provider import LiteLLMProvider

__all__ = ["Provider", "LiteLLMProvider"]
