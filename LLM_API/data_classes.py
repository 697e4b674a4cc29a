import base64
import binascii
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any


DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"


# ========== Inline media ==========

@dataclass
class InlineImage:
    """Binary image payload sent to or received from a provider."""
    data: bytes = b""
    mime_type: str = DEFAULT_IMAGE_MIME_TYPE

    @classmethod
    def from_data_url(cls, data_url: str) -> "InlineImage":
        """Decode a ``data:<mime>;base64,<payload>`` string."""
        if not data_url or "," not in data_url:
            raise ValueError("Image must be a base64 data URL")
        header, payload = data_url.split(",", 1)
        mime_type = DEFAULT_IMAGE_MIME_TYPE
        if header.startswith("data:"):
            declared = header[len("data:"):].split(";", 1)[0]
            if declared.startswith("image/"):
                mime_type = declared
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"Invalid base64 image payload: {exc}") from exc
        return cls(data=data, mime_type=mime_type)

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


# ========== Base Classes ==========

@dataclass
class BaseRequest:
    """Base class for every provider request"""
    prompt: str = ""
    model_name: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None


@dataclass
class BaseResponse:
    """Base class for every provider response"""
    text: str = ""
    model_used: Optional[str] = None
    error: Optional[str] = None
    raw_response: Optional[Any] = None

    @property
    def success(self) -> bool:
        return self.error is None


# ========== Structured Output ==========

@dataclass
class StructuredOutputRequest(BaseRequest):
    """Request for JSON output matching ``schema``.

    ``schema`` is either a JSON schema dict or a pydantic model class; both are
    accepted by the Gemini SDK as ``response_schema``.
    """
    schema: Any = field(default_factory=dict)
    schema_name: str = "response"
    images: List[InlineImage] = field(default_factory=list)
    instructions: Optional[str] = None


@dataclass
class StructuredOutputResponse(BaseResponse):
    parsed_output: Optional[Dict[str, Any]] = None
    validation_error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.validation_error is None and self.parsed_output is not None


# ========== Image Generation ==========

@dataclass
class ImageGenerationRequest(BaseRequest):
    reference_images: List[InlineImage] = field(default_factory=list)
    aspect_ratio: str = "9:16"


@dataclass
class ImageGenerationResponse(BaseResponse):
    images: List[InlineImage] = field(default_factory=list)

    @property
    def has_images(self) -> bool:
        return len(self.images) > 0

    @property
    def first_data_url(self) -> str:
        """Data URL of the first image, or an empty string when none came back."""
        if not self.images:
            return ""
        return self.images[0].to_data_url()


# ========== Chat ==========

@dataclass
class ChatTurn:
    """One prior turn of a conversation (role is ``user`` or ``model``)"""
    role: str = "user"
    text: str = ""


@dataclass
class ChatRequest(BaseRequest):
    system_instruction: Optional[str] = None
    history: List[ChatTurn] = field(default_factory=list)


@dataclass
class ChatResponse(BaseResponse):
    pass


# ========== Provider Configuration ==========

@dataclass
class ProviderConfig:
    provider_name: str = ""
    max_tokens_limit: Optional[int] = None

