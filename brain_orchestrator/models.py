"""Data models for products, planned sections and generated slides."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class SectionType(str, Enum):
    HERO = "hero"
    USP = "usp"
    SPECS = "specs"


class PipelineStage(str, Enum):
    """Progress of one build run.

    ``VERIFYING`` and ``PLANNING`` are shown by the progress widget but no
    transition leads into them.
    """

    IDLE = "idle"
    THINKING = "thinking"
    VERIFYING = "verifying"
    PLANNING = "planning"
    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ProductData:
    """Snapshot of the user's product input; ``images`` are data URLs."""

    name: str
    specs: str = ""
    images: Tuple[str, ...] = ()

    @property
    def reference_image(self) -> Optional[str]:
        return self.images[0] if self.images else None


@dataclass(frozen=True, slots=True)
class SectionDescriptor:
    title: str
    prompt: str
    type: SectionType

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SectionDescriptor":
        return cls(
            title=str(data.get("title") or ""),
            prompt=str(data.get("prompt") or ""),
            type=SectionType(data.get("type", SectionType.USP.value)),
        )


@dataclass(slots=True)
class DesignPlan:
    """Ordered section descriptors produced before any rendering happens."""

    sections: List[SectionDescriptor] = field(default_factory=list)
    brand_theme: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SectionCopy:
    copy: str = ""
    description: str = ""


@dataclass(frozen=True, slots=True)
class GeneratedSlice:
    """A finished slide: image data URL plus overlay headline and body text."""

    url: str
    title: str
    copy: str
    description: str
    type: SectionType

    @property
    def badge(self) -> str:
        return {
            SectionType.HERO: "HERO HIT-SHOT",
            SectionType.SPECS: "TECH DATA",
        }.get(self.type, "CORE USP")


@dataclass(frozen=True, slots=True)
class ChatMessage:
    role: str
    text: str
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def user(cls, text: str) -> "ChatMessage":
        return cls(role="user", text=text)

    @classmethod
    def model(cls, text: str) -> "ChatMessage":
        return cls(role="model", text=text)


@dataclass(slots=True)
class BrainKnowledge:
    """Feedback log persisted between sessions."""

    successful_strategies: List[str] = field(default_factory=list)
    failed_points: List[str] = field(default_factory=list)
    total_projects: int = 0
    references: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrainKnowledge":
        return cls(
            successful_strategies=list(data.get("successfulStrategies", [])),
            failed_points=list(data.get("failedPoints", [])),
            total_projects=int(data.get("totalProjects", 0)),
            references=list(data.get("references", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "successfulStrategies": list(self.successful_strategies),
            "failedPoints": list(self.failed_points),
            "totalProjects": self.total_projects,
            "references": list(self.references),
        }
