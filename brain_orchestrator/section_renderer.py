"""Render one planned section into an image and its overlay copy."""

from __future__ import annotations

import logging
from typing import Optional

from LLM_API.data_classes import (
    ImageGenerationRequest,
    InlineImage,
    StructuredOutputRequest,
)
from LLM_API.exceptions import LLMError

from .errors import ExternalServiceError
from .models import GeneratedSlice, ProductData, SectionCopy, SectionDescriptor, SectionType
from .sanitizer import sanitize_copy
from .schemas import SECTION_COPY_SCHEMA

LOGGER = logging.getLogger(__name__)

IMAGE_ASPECT_RATIO = "9:16"
IMAGE_STYLE_TEMPLATE = (
    "Commercial high-end photography. {prompt}. High contrast, professional studio lighting. "
    "9:16 aspect. Clean top area for text overlay."
)
SPECS_INSTRUCTION = "이미지를 보고 제품의 핵심 스펙과 정보고시를 요약하세요. 카피는 'PRODUCT SPECS', 설명은 스펙 나열."
DEFAULT_INSTRUCTION = "이미지의 분위기에 맞춰 10자 이내의 강렬한 카피와 30자 이내의 설명을 작성하세요. 아주 간결해야 합니다."


class SectionRenderer:
    """Two-phase renderer: image generation first, then copy finalisation."""

    def __init__(
        self,
        llm_client,
        *,
        text_model: Optional[str] = None,
        image_model: Optional[str] = None,
    ) -> None:
        self.llm_client = llm_client
        self.text_model = text_model
        self.image_model = image_model

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def render(self, section: SectionDescriptor, product: ProductData) -> GeneratedSlice:
        image_url = await self.generate_image(section.prompt, product.reference_image)
        copy = await self.finalize_text(image_url, product, section.type, section.title)
        return GeneratedSlice(
            url=image_url,
            title=section.title,
            copy=copy.copy,
            description=copy.description,
            type=section.type,
        )

    async def generate_image(self, prompt: str, reference_image: Optional[str] = None) -> str:
        """Return a data URL for the generated image, or ``""`` if none came back."""

        references = []
        if reference_image:
            references.append(self._decode_image(reference_image, phase="image"))
        request = ImageGenerationRequest(
            prompt=IMAGE_STYLE_TEMPLATE.format(prompt=prompt),
            model_name=self.image_model,
            reference_images=references,
            aspect_ratio=IMAGE_ASPECT_RATIO,
        )
        try:
            response = await self.llm_client.generate_image(request)
        except LLMError as exc:
            raise ExternalServiceError(f"이미지 생성 실패: {exc}", phase="image") from exc
        if response.error:
            raise ExternalServiceError(f"이미지 생성 실패: {response.error}", phase="image")
        if not response.has_images:
            LOGGER.warning("No image returned for prompt %.60r", prompt)
        return response.first_data_url

    async def finalize_text(
        self,
        image_url: str,
        product: ProductData,
        section_type: SectionType,
        section_title: str,
    ) -> SectionCopy:
        instruction = SPECS_INSTRUCTION if section_type == SectionType.SPECS else DEFAULT_INSTRUCTION
        images = [self._decode_image(image_url, phase="text")] if image_url else []
        request = StructuredOutputRequest(
            prompt=f"상품: {product.name}. 주제: {section_title}. {instruction}",
            schema=SECTION_COPY_SCHEMA,
            schema_name="section_copy",
            images=images,
            model_name=self.text_model,
        )
        try:
            response = await self.llm_client.generate_structured_output(request)
        except LLMError as exc:
            raise ExternalServiceError(f"문구 생성 실패: {exc}", phase="text") from exc
        if response.error:
            raise ExternalServiceError(f"문구 생성 실패: {response.error}", phase="text")

        parsed = response.parsed_output or {}
        if response.validation_error:
            LOGGER.warning("Copy response for %r was not JSON; using empty copy", section_title)
            parsed = {}
        return SectionCopy(
            copy=sanitize_copy(_as_text(parsed.get("copy"))),
            description=sanitize_copy(_as_text(parsed.get("description"))),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _decode_image(data_url: str, *, phase: str) -> InlineImage:
        try:
            return InlineImage.from_data_url(data_url)
        except ValueError as exc:
            raise ExternalServiceError(f"이미지 데이터를 읽을 수 없습니다: {exc}", phase=phase) from exc


def _as_text(value) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
