"""Base types shared by the tool handlers."""

import json
import time
from dataclasses import dataclass, field
from typing import Any

from localtts.audio.player import AudioPlayer
from localtts.core.config import AppConfig
from localtts.core.exceptions import TTSError
from localtts.tts.base import TTSEngine


@dataclass
class ToolResult:
    """Result from executing a tool, rendered as a JSON text payload."""
    success: bool
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **payload: Any) -> "ToolResult":
        return cls(success=True, payload=payload)

    @classmethod
    def failure(cls, error: TTSError) -> "ToolResult":
        return cls(success=False, payload=error.to_dict())

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, **self.payload}

    def to_text(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False, default=str)


@dataclass
class ToolContext:
    """Everything a tool handler may touch, owned by the server.

    ``engines`` lists every configured engine, ready or not; the player
    is the one playback controller of this server.
    """
    config: AppConfig
    engines: list[TTSEngine]
    player: AudioPlayer
    started_at: float = field(default_factory=time.monotonic)

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.started_at
