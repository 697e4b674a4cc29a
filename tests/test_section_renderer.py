import asyncio

import pytest

from LLM_API.data_classes import InlineImage, StructuredOutputResponse
from brain_orchestrator.errors import ExternalServiceError
from brain_orchestrator.models import ProductData, SectionDescriptor, SectionType
from brain_orchestrator.section_renderer import SPECS_INSTRUCTION, SectionRenderer

from tests.llm_stubs import StubGeminiLLM, png_bytes, png_data_url


@pytest.fixture
def product():
    return ProductData(name="무선 청소기", specs="흡입력 200W", images=(png_data_url((0, 0, 255)),))


def test_render_generates_image_then_text(product):
    stub = StubGeminiLLM(copies=[{"copy": '"카피: 압도적 흡입"', "description": "소설명: 먼지 제로"}])
    renderer = SectionRenderer(stub, text_model="text-model", image_model="image-model")
    section = SectionDescriptor(title="강력한 흡입", prompt="vacuum on a marble floor", type=SectionType.USP)

    slice_ = asyncio.run(renderer.render(section, product))

    assert stub.calls == ["image:1", "text:1"]
    assert slice_.title == "강력한 흡입"
    assert slice_.type == SectionType.USP
    assert slice_.copy == "압도적 흡입"
    assert slice_.description == "먼지 제로"
    assert InlineImage.from_data_url(slice_.url).data == stub.image_data

    image_request = stub.image_requests[0]
    assert "vacuum on a marble floor" in image_request.prompt
    assert image_request.aspect_ratio == "9:16"
    assert image_request.model_name == "image-model"
    assert image_request.reference_images[0].data == png_bytes((0, 0, 255))

    text_request = stub.text_requests[0]
    assert text_request.model_name == "text-model"
    assert text_request.images[0].data == stub.image_data
    assert "무선 청소기" in text_request.prompt


def test_specs_section_uses_specs_instruction(product):
    stub = StubGeminiLLM()
    section = SectionDescriptor(title="스펙", prompt="spec sheet", type=SectionType.SPECS)

    asyncio.run(SectionRenderer(stub).render(section, product))

    assert SPECS_INSTRUCTION in stub.text_requests[0].prompt


def test_missing_image_still_produces_slice(product):
    stub = StubGeminiLLM(return_images=False)
    section = SectionDescriptor(title="히어로", prompt="hero shot", type=SectionType.HERO)

    slice_ = asyncio.run(SectionRenderer(stub).render(section, product))

    assert slice_.url == ""
    assert stub.text_requests[0].images == []


def test_image_failure_raises_with_image_phase(product):
    stub = StubGeminiLLM(fail_on=["image"])
    section = SectionDescriptor(title="히어로", prompt="hero shot", type=SectionType.HERO)

    with pytest.raises(ExternalServiceError) as excinfo:
        asyncio.run(SectionRenderer(stub).render(section, product))

    assert excinfo.value.phase == "image"
    assert stub.calls == ["image:1"]


def test_text_failure_raises_with_text_phase(product):
    stub = StubGeminiLLM(fail_on=["text"])
    section = SectionDescriptor(title="히어로", prompt="hero shot", type=SectionType.HERO)

    with pytest.raises(ExternalServiceError) as excinfo:
        asyncio.run(SectionRenderer(stub).render(section, product))

    assert excinfo.value.phase == "text"


def test_unparseable_copy_falls_back_to_empty_strings(product):
    class InvalidCopyLLM(StubGeminiLLM):
        async def generate_structured_output(self, request):
            return StructuredOutputResponse(text="oops", validation_error="Response is not valid JSON")

    copy = asyncio.run(
        SectionRenderer(InvalidCopyLLM()).finalize_text(png_data_url(), product, SectionType.USP, "t")
    )

    assert copy.copy == ""
    assert copy.description == ""


def test_invalid_reference_image_raises(product):
    broken = ProductData(name="x", images=("data:image/png;base64,!!!",))
    with pytest.raises(ExternalServiceError):
        asyncio.run(SectionRenderer(StubGeminiLLM()).generate_image("prompt", broken.reference_image))
