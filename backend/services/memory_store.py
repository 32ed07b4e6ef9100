"""
Preference Memory - user preferences injected into every prompt

The file is read once; later reads are served from memory and every update
writes through to disk.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any

from .config_manager import DEFAULT_MODEL

logger = logging.getLogger(__name__)


class PreferenceStore:
    """JSON-file backed store; updates merge into the stored document"""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._memory: dict[str, Any] | None = None

    def _default_memory(self) -> dict[str, Any]:
        return {
            "preferences": {},
            "frequentActions": [],
            "lastModel": DEFAULT_MODEL,
        }

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return self._default_memory()
        try:
            with open(self.path, encoding="utf-8") as f:
                return {**self._default_memory(), **json.load(f)}
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Error loading memory: %s", e)
            return self._default_memory()

    def _cached(self) -> dict[str, Any]:
        if self._memory is None:
            self._memory = self._read()
        return self._memory

    def load(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._cached())

    def preferences(self) -> dict[str, Any]:
        prefs = self.load().get("preferences")
        return prefs if isinstance(prefs, dict) else {}

    def update(self, changes: dict[str, Any]) -> dict[str, Any]:
        """Merge changes into the stored memory and persist it"""
        with self._lock:
            memory = {**self._cached(), **changes}
            self.path.parent.mkdir(parents=True, exist_ok=True)
            try:
                with open(self.path, "w", encoding="utf-8") as f:
                    json.dump(memory, f, indent=2, ensure_ascii=False)
            except OSError as e:
                raise RuntimeError(f"Failed to save memory: {e}")
            self._memory = memory
            return copy.deepcopy(memory)
