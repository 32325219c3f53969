"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any

from loguru import logger

from core.models import DEFAULT_PROCEDURE_NAMES, DUE_SOON_DAYS


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node


@dataclass
class CoreSettings:
    """Typed view over the settings the core and its adapters consume."""

    due_soon_days: int = DUE_SOON_DAYS
    procedures: list[str] = field(default_factory=lambda: list(DEFAULT_PROCEDURE_NAMES))
    log_dir: str | None = None
    log_level: str = "INFO"

    @classmethod
    def from_json(cls, settings: JsonSettings) -> CoreSettings:
        due_soon = settings.get("portfolio.due_soon_days", DUE_SOON_DAYS)
        try:
            due_soon_days = int(due_soon)
        except (TypeError, ValueError):
            logger.warning("Invalid portfolio.due_soon_days: {}", due_soon)
            due_soon_days = DUE_SOON_DAYS

        raw_procedures = settings.get("capture.procedures", DEFAULT_PROCEDURE_NAMES)
        if isinstance(raw_procedures, list):
            procedures = [str(p) for p in raw_procedures if str(p).strip()]
        else:
            logger.warning("Invalid capture.procedures: {}", raw_procedures)
            procedures = list(DEFAULT_PROCEDURE_NAMES)

        return cls(
            due_soon_days=due_soon_days,
            procedures=procedures,
            log_dir=settings.get("logging.dir"),
            log_level=str(settings.get("logging.level", "INFO")),
        )
