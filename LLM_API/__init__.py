"""
LLM API Package - async interface over the Gemini generative API
"""

from .base import CallModel
from .data_classes import (
    BaseRequest, BaseResponse,
    InlineImage,
    StructuredOutputRequest, StructuredOutputResponse,
    ImageGenerationRequest, ImageGenerationResponse,
    ChatTurn, ChatRequest, ChatResponse,
    ProviderConfig
)
from .exceptions import (
    LLMError, LLMValidationError, LLMAuthenticationError
)
from .providers.gemini import GeminiModel

__version__ = "1.0.0"
__all__ = [
    # Base
    'CallModel',
    # Data Classes
    'BaseRequest', 'BaseResponse',
    'InlineImage',
    'StructuredOutputRequest', 'StructuredOutputResponse',
    'ImageGenerationRequest', 'ImageGenerationResponse',
    'ChatTurn', 'ChatRequest', 'ChatResponse',
    'ProviderConfig',
    # Exceptions
    'LLMError', 'LLMValidationError', 'LLMAuthenticationError',
    # Providers
    'GeminiModel'
]
