"""Error taxonomy for the build pipeline, chat editing and export."""

from __future__ import annotations

from typing import Optional


class BrainOrchestratorError(Exception):
    """Base class for errors raised by this package."""


class ValidationError(BrainOrchestratorError):
    """User input is not sufficient to start a build."""


class ExternalServiceError(BrainOrchestratorError):
    """A plan, image or text backend call failed or returned an unusable payload."""

    def __init__(self, message: str, *, phase: Optional[str] = None) -> None:
        super().__init__(message)
        self.phase = phase


class PatchParseError(BrainOrchestratorError):
    """An update directive was found but its JSON payload is invalid."""


class ChatServiceError(BrainOrchestratorError):
    """The chat backend call failed."""


class ExportError(BrainOrchestratorError):
    """A slide could not be rendered to an image file."""


class InvalidStageTransition(BrainOrchestratorError):
    """The pipeline was asked to move between stages that are not connected."""
