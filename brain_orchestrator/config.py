"""Runtime settings read from the environment (and an optional .env file)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from LLM_API.providers.gemini import DEFAULT_IMAGE_MODEL, DEFAULT_TEXT_MODEL

DEFAULT_EXPORT_DELAY = 0.6
DEFAULT_HISTORY_WINDOW = 5


@dataclass(frozen=True)
class Settings:
    gemini_api_key: Optional[str] = None
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    knowledge_path: Path = Path("data/brain_knowledge.json")
    export_dir: Path = Path("output")
    font_path: Optional[Path] = None
    export_delay: float = DEFAULT_EXPORT_DELAY
    history_window: int = DEFAULT_HISTORY_WINDOW
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        font_path = os.getenv("BRAIN_FONT_PATH")
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            text_model=os.getenv("BRAIN_TEXT_MODEL", DEFAULT_TEXT_MODEL),
            image_model=os.getenv("BRAIN_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
            knowledge_path=Path(os.getenv("BRAIN_KNOWLEDGE_PATH", "data/brain_knowledge.json")),
            export_dir=Path(os.getenv("BRAIN_EXPORT_DIR", "output")),
            font_path=Path(font_path) if font_path else None,
            export_delay=float(os.getenv("BRAIN_EXPORT_DELAY", DEFAULT_EXPORT_DELAY)),
            history_window=int(os.getenv("BRAIN_HISTORY_WINDOW", DEFAULT_HISTORY_WINDOW)),
            log_level=os.getenv("BRAIN_LOG_LEVEL", "INFO").upper(),
        )

    def configure_logging(self) -> None:
        logging.basicConfig(
            level=getattr(logging, self.log_level, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
