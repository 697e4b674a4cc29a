import json
import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from ..converters import GeminiConverter
from ..data_classes import (
    ChatRequest, ChatResponse,
    ImageGenerationRequest, ImageGenerationResponse,
    StructuredOutputRequest, StructuredOutputResponse,
    ProviderConfig
)
from ..decorators import log_request
from ._base_provider import BaseProvider

LOGGER = logging.getLogger(__name__)

DEFAULT_TEXT_MODEL = "gemini-3-pro-preview"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"


class GeminiModel(BaseProvider):
    """Gemini API implementation of CallModel backed by the async client.

    ``client`` may be passed in directly (tests hand in a fake exposing the
    same ``aio`` surface); otherwise one is created from ``GEMINI_API_KEY``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = DEFAULT_TEXT_MODEL,
        image_model_name: str = DEFAULT_IMAGE_MODEL,
        client: Optional[Any] = None,
    ):
        self.image_model_name = image_model_name
        self._injected_client = client
        super().__init__(api_key=api_key, model_name=model_name)

    def _get_provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            provider_name="Gemini",
            max_tokens_limit=8192,
        )

    def setup_client(self):
        if self._injected_client is not None:
            self.client = self._injected_client
            return
        self.client = genai.Client(api_key=self._get_api_key("GEMINI_API_KEY"))

    @log_request
    async def generate_structured_output(self, request: StructuredOutputRequest) -> StructuredOutputResponse:
        """Generate JSON output; an empty body is treated as ``{}``"""
        self._validate_request(request)
        model = request.model_name or self.model_name
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=request.schema,
            system_instruction=request.instructions,
            temperature=request.temperature,
            max_output_tokens=request.max_tokens,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=model,
                contents=GeminiConverter.convert_contents(
                    request.prompt, request.images, images_first=True
                ),
                config=config,
            )
        except Exception as e:
            return StructuredOutputResponse(
                text="",
                model_used=model,
                error=str(e)
            )

        text = getattr(response, 'text', '') or ""
        try:
            parsed = json.loads(text or "{}")
        except json.JSONDecodeError as e:
            LOGGER.debug("Structured output is not valid JSON: %s", text)
            return StructuredOutputResponse(
                text=text,
                model_used=model,
                validation_error=f"Response is not valid JSON: {e}",
                raw_response=response
            )
        if not isinstance(parsed, dict):
            return StructuredOutputResponse(
                text=text,
                model_used=model,
                validation_error=f"Expected a JSON object, got {type(parsed).__name__}",
                raw_response=response
            )
        return StructuredOutputResponse(
            text=text,
            parsed_output=parsed,
            model_used=model,
            raw_response=response
        )

    @log_request
    async def generate_image(self, request: ImageGenerationRequest) -> ImageGenerationResponse:
        self._validate_request(request)
        model = request.model_name or self.image_model_name
        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=request.aspect_ratio),
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=model,
                contents=GeminiConverter.convert_contents(request.prompt, request.reference_images),
                config=config,
            )
        except Exception as e:
            return ImageGenerationResponse(
                model_used=model,
                error=str(e)
            )

        images = GeminiConverter.extract_images(response)
        if not images:
            LOGGER.info("Image model %s returned no image part", model)
        return ImageGenerationResponse(
            model_used=model,
            images=images,
            raw_response=response
        )

    @log_request
    async def chat(self, request: ChatRequest) -> ChatResponse:
        self._validate_request(request)
        model = request.model_name or self.model_name
        try:
            session = self.client.aio.chats.create(
                model=model,
                config=types.GenerateContentConfig(
                    system_instruction=request.system_instruction,
                    temperature=request.temperature,
                    max_output_tokens=request.max_tokens,
                ),
                history=GeminiConverter.convert_history(request.history),
            )
            response = await session.send_message(request.prompt)
        except Exception as e:
            return ChatResponse(
                text="",
                model_used=model,
                error=str(e)
            )
        return ChatResponse(
            text=getattr(response, 'text', '') or "",
            model_used=model,
            raw_response=response
        )
