"""Abstract base class that normalises the provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .data_classes import (
    ChatRequest,
    ChatResponse,
    ImageGenerationRequest,
    ImageGenerationResponse,
    ProviderConfig,
    StructuredOutputRequest,
    StructuredOutputResponse,
)


class CallModel(ABC):
    """Abstract base class for all LLM providers.

    Every call is a coroutine: one request is a single suspension point for the
    caller's event loop. Failures are reported through ``response.error``
    instead of being raised, so callers decide how fatal they are.
    """

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self.api_key = api_key
        self.model_name = model_name
        self.client = None
        self.provider_config = self._get_provider_config()
        self.setup_client()

    @abstractmethod
    def setup_client(self) -> None:
        """Initialise the provider client."""

    @abstractmethod
    def _get_provider_config(self) -> ProviderConfig:
        """Return provider specific configuration metadata."""

    # ------------------------------------------------------------------
    # Core API methods that providers must implement
    # ------------------------------------------------------------------
    @abstractmethod
    async def generate_structured_output(
        self, request: StructuredOutputRequest
    ) -> StructuredOutputResponse:
        """Generate structured JSON output."""

    @abstractmethod
    async def generate_image(
        self, request: ImageGenerationRequest
    ) -> ImageGenerationResponse:
        """Generate zero or more images from a prompt."""

    @abstractmethod
    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Send one message on top of prior conversation turns."""

