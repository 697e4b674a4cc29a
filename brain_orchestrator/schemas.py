"""Response schemas handed to Gemini as ``response_schema``."""

from typing import Dict, List, Literal

from pydantic import BaseModel, Field


class SectionSchema(BaseModel):
    title: str = Field(description="섹션 제목")
    prompt: str = Field(description="이 섹션의 이미지를 생성할 상세 프롬프트")
    type: Literal["hero", "usp", "specs"] = Field(description="섹션 유형")


class PlanSchema(BaseModel):
    sections: List[SectionSchema] = Field(description="상세페이지 섹션 목록 (순서대로)")


# ``copy`` collides with a BaseModel attribute, so this one stays a plain schema.
SECTION_COPY_SCHEMA: Dict[str, object] = {
    "type": "object",
    "properties": {
        "copy": {"type": "string", "description": "짧고 강렬한 헤드라인"},
        "description": {"type": "string", "description": "헤드라인 아래에 들어갈 설명"},
    },
    "required": ["copy", "description"],
}
