"""Generative product detail page builder: plan, render, edit and export slides."""

from .chat_agent import ChatContext, ChatReply, ChatSession, ConversationalPatchAgent
from .config import Settings
from .directive import (
    DirectiveFound,
    DirectiveMalformed,
    DirectiveNotFound,
    extract_directive,
    strip_directive,
)
from .errors import (
    BrainOrchestratorError,
    ChatServiceError,
    ExportError,
    ExternalServiceError,
    InvalidStageTransition,
    PatchParseError,
    ValidationError,
)
from .exporter import SliceExporter, export_filename
from .knowledge import (
    InMemoryKnowledgeStorage,
    JsonFileKnowledgeStorage,
    KnowledgeLog,
)
from .models import (
    BrainKnowledge,
    ChatMessage,
    DesignPlan,
    GeneratedSlice,
    PipelineStage,
    ProductData,
    SectionCopy,
    SectionDescriptor,
    SectionType,
)
from .orchestrator import (
    PipelineEvent,
    PipelineOrchestrator,
    PipelineResult,
    stage_progress,
)
from .planning import DesignPlanGenerator
from .sanitizer import sanitize_copy
from .section_renderer import SectionRenderer
from .slice_store import SliceState, SliceStore

__all__ = [
    "BrainKnowledge",
    "BrainOrchestratorError",
    "ChatContext",
    "ChatMessage",
    "ChatReply",
    "ChatServiceError",
    "ChatSession",
    "ConversationalPatchAgent",
    "DesignPlan",
    "DesignPlanGenerator",
    "DirectiveFound",
    "DirectiveMalformed",
    "DirectiveNotFound",
    "ExportError",
    "ExternalServiceError",
    "GeneratedSlice",
    "InMemoryKnowledgeStorage",
    "InvalidStageTransition",
    "JsonFileKnowledgeStorage",
    "KnowledgeLog",
    "PatchParseError",
    "PipelineEvent",
    "PipelineOrchestrator",
    "PipelineResult",
    "PipelineStage",
    "ProductData",
    "SectionCopy",
    "SectionDescriptor",
    "SectionRenderer",
    "SectionType",
    "Settings",
    "SliceExporter",
    "SliceState",
    "SliceStore",
    "ValidationError",
    "export_filename",
    "extract_directive",
    "sanitize_copy",
    "stage_progress",
    "strip_directive",
]
