from .anthropic import AnthropicProvider
from .base import TextGenerationProvider
from .factory import available_providers, create_provider
from .gemini import GeminiProvider

__all__ = [
    "AnthropicProvider",
    "GeminiProvider",
    "TextGenerationProvider",
    "available_providers",
    "create_provider",
]
