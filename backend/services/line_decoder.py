"""Newline-delimited JSON decoding over a byte stream"""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


class JsonLineDecoder:
    """
    Incremental NDJSON decoder.

    ``feed`` accepts arbitrary chunks, keeps the trailing partial line for the
    next call and returns the objects parsed from every complete line. Lines
    that are not valid JSON are dropped; the CLI mixes diagnostic output into
    stdout when run with ``--verbose``.
    """

    def __init__(self) -> None:
        self._buffer = b""
        self.dropped = 0

    def feed(self, chunk: bytes) -> list[Any]:
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split(b"\n")
        return self._parse(lines)

    def flush(self) -> list[Any]:
        """Parse whatever is left once the stream has ended"""
        rest, self._buffer = self._buffer, b""
        return self._parse([rest])

    def _parse(self, lines: list[bytes]) -> list[Any]:
        parsed = []
        for raw in lines:
            line = raw.strip()
            if not line:
                continue
            try:
                parsed.append(json.loads(line))
            except (json.JSONDecodeError, UnicodeDecodeError):
                self.dropped += 1
                logger.debug("Dropped non-JSON line: %.200r", line)
        return parsed
