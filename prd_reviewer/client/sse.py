"""
Incremental Server-Sent Events frame parser.

Feed decoded text chunks as they arrive; complete frames come out as
decoded JSON payloads. Comment lines (keepalives) are skipped and frames
whose data is not valid JSON are dropped.

Dependencies: json (stdlib)
System role: Wire decoding for the progress push channel
"""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


class SSEParser:
    """Line-oriented SSE decoder keeping partial input between feeds."""

    def __init__(self) -> None:
        self._buffer = ""
        self._data_lines: list[str] = []

    def feed(self, chunk: str) -> list[Any]:
        """
        Consume a chunk of the stream.

        Args:
            chunk: Decoded text, split anywhere

        Returns:
            list: JSON payloads of every frame completed by this chunk
        """
        self._buffer += chunk
        payloads: list[Any] = []

        while True:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline].rstrip("\r")
            self._buffer = self._buffer[newline + 1 :]

            if line == "":
                payload = self._dispatch()
                if payload is not None:
                    payloads.append(payload)
            elif line.startswith(":"):
                continue
            elif line.startswith("data:"):
                value = line[5:]
                self._data_lines.append(value[1:] if value.startswith(" ") else value)
            # event:, id: and retry: fields are not used by this channel

        return payloads

    def _dispatch(self) -> Any:
        if not self._data_lines:
            return None
        raw = "\n".join(self._data_lines)
        self._data_lines = []
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Dropping malformed SSE frame", extra={"frame_preview": raw[:100]})
            return None
