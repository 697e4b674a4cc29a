"""Derive the ordered section plan of a detail page from product data."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from LLM_API.data_classes import StructuredOutputRequest, StructuredOutputResponse
from LLM_API.exceptions import LLMError

from .errors import ExternalServiceError
from .models import DesignPlan, ProductData, SectionDescriptor, SectionType
from .schemas import PlanSchema

LOGGER = logging.getLogger(__name__)


class DesignPlanGenerator:
    """Ask the text model for a hero / usp… / specs section plan."""

    def __init__(self, llm_client, *, model_name: Optional[str] = None) -> None:
        self.llm_client = llm_client
        self.model_name = model_name

    async def generate_plan(self, product: ProductData) -> DesignPlan:
        if self.llm_client is None:
            raise RuntimeError("LLM client is required to generate a design plan")

        request = StructuredOutputRequest(
            prompt=self._build_prompt(product),
            schema=PlanSchema,
            schema_name="design_plan",
            model_name=self.model_name,
        )
        try:
            response = await self.llm_client.generate_structured_output(request)
        except LLMError as exc:
            raise ExternalServiceError(f"기획 생성 실패: {exc}", phase="plan") from exc

        payload = self._extract_payload(response)
        plan = self._build_plan(payload)
        LOGGER.info("Design plan for %r has %d sections", product.name, len(plan.sections))
        return plan

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _build_prompt(self, product: ProductData) -> str:
        sections = [
            f"상품명: {product.name}, 스펙: {product.specs}.",
            "이 상품을 위한 6단계 상세페이지를 기획하세요.",
            "1번은 히어로(hero), 2~5번은 특장점(usp), 6번은 반드시 정보고시/스펙(specs)이어야 합니다.",
            "각 섹션별로 이미지를 생성할 상세 프롬프트만 JSON으로 반환하세요.",
        ]
        return "\n".join(sections)

    def _extract_payload(self, response: Optional[StructuredOutputResponse]) -> Dict[str, Any]:
        if response is None:
            raise ExternalServiceError("기획 생성 실패: 응답이 없습니다.", phase="plan")
        if response.error:
            raise ExternalServiceError(f"기획 생성 실패: {response.error}", phase="plan")
        if response.validation_error:
            raise ExternalServiceError(
                f"기획 응답을 해석할 수 없습니다: {response.validation_error}", phase="plan"
            )
        return response.parsed_output or {}

    def _build_plan(self, payload: Dict[str, Any]) -> DesignPlan:
        raw_sections = payload.get("sections")
        if not isinstance(raw_sections, list):
            raise ExternalServiceError("기획 응답에 섹션 목록이 없습니다.", phase="plan")

        sections: List[SectionDescriptor] = []
        for idx, raw in enumerate(raw_sections, start=1):
            if not isinstance(raw, dict):
                LOGGER.debug("Skipping non-object section %d: %r", idx, raw)
                continue
            section_type = raw.get("type")
            if section_type not in {member.value for member in SectionType}:
                LOGGER.warning("Section %d has unknown type %r; treating as usp", idx, section_type)
                raw = {**raw, "type": SectionType.USP.value}
            sections.append(SectionDescriptor.from_dict(raw))

        brand_theme = payload.get("brandTheme") or payload.get("brand_theme")
        return DesignPlan(sections=sections, brand_theme=brand_theme)
