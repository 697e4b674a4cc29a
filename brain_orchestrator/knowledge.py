"""Append-only feedback log with pluggable persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from .models import BrainKnowledge

LOGGER = logging.getLogger(__name__)

KNOWLEDGE_KEY = "brain_knowledge"


class KnowledgeStorage(Protocol):
    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, value: str) -> None: ...


class InMemoryKnowledgeStorage:
    def __init__(self) -> None:
        self.records: Dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self.records.get(key)

    def write(self, key: str, value: str) -> None:
        self.records[key] = value


class JsonFileKnowledgeStorage:
    """Persist records in a single JSON file mapping key to serialized value."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    # ------------------------------------------------------------------
    # I/O helpers
    # ------------------------------------------------------------------
    def read(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def write(self, key: str, value: str) -> None:
        records = self._load()
        records[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(records, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            LOGGER.warning("Knowledge file %s is not valid JSON; starting fresh", self.path)
            return {}
        return data if isinstance(data, dict) else {}


class KnowledgeLog:
    """Read-modify-write access to the single ``BrainKnowledge`` record.

    Saves are not transactional; the last writer wins.
    """

    def __init__(self, storage: KnowledgeStorage, *, key: str = KNOWLEDGE_KEY) -> None:
        self.storage = storage
        self.key = key

    def load(self) -> BrainKnowledge:
        raw = self.storage.read(self.key)
        if not raw:
            return BrainKnowledge()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning("Stored knowledge record is corrupt; using defaults")
            return BrainKnowledge()
        if not isinstance(data, dict):
            return BrainKnowledge()
        return BrainKnowledge.from_dict(data)

    def record(self, improvement: str, critique: str) -> BrainKnowledge:
        knowledge = self.load()
        knowledge.successful_strategies.append(improvement)
        knowledge.failed_points.append(critique)
        knowledge.total_projects += 1
        self._save(knowledge)
        return knowledge

    def add_reference(self, reference: str) -> BrainKnowledge:
        knowledge = self.load()
        knowledge.references.append(reference)
        self._save(knowledge)
        return knowledge

    def _save(self, knowledge: BrainKnowledge) -> None:
        self.storage.write(self.key, json.dumps(knowledge.to_dict(), ensure_ascii=False))
