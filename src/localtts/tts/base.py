"""Abstract base class for Text-to-Speech engines."""

import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import soundfile as sf

from localtts.core.constants import MAX_TEXT_LENGTH
from localtts.core.exceptions import (
    EngineNotAvailableError,
    FileOperationError,
    InvalidParametersError,
    SynthesisFailedError,
    TextTooLongError,
    TTSError,
    VoiceNotFoundError,
)

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 30


@dataclass(frozen=True)
class Voice:
    """A synthesis profile belonging to one engine."""
    id: str
    name: str
    language: str
    engine: str
    quality: str
    gender: Optional[str] = None
    description: Optional[str] = None

    def matches(self, requested: str) -> bool:
        wanted = requested.lower()
        return self.name.lower() == wanted or self.id.lower() == wanted

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SynthesisRequest:
    text: str
    voice: Optional[str] = None
    engine: Optional[str] = None
    output_format: Optional[str] = None
    speed: float = 1.0
    quality: Optional[str] = None


@dataclass
class AudioResult:
    """A synthesized audio file on disk."""
    file_path: str
    format: str
    size: int
    voice: str
    engine: str
    text_length: int
    synthesis_time: int  # milliseconds
    duration: Optional[float] = None  # audio seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "format": self.format,
            "duration": self.duration,
            "size": self.size,
            "metadata": {
                "voice": self.voice,
                "engine": self.engine,
                "textLength": self.text_length,
                "synthesisTime": self.synthesis_time,
            },
        }


def validate_text(text: Optional[str], engine: Optional[str] = None) -> None:
    """Reject empty and over-long input text."""
    if not text or not text.strip():
        raise InvalidParametersError("Text cannot be empty", engine)
    if len(text) > MAX_TEXT_LENGTH:
        raise TextTooLongError(
            f"Text too long ({len(text)} characters, max {MAX_TEXT_LENGTH:,})",
            engine,
        )


def text_preview(text: str, length: int = PREVIEW_LENGTH) -> str:
    """Filename-safe slug built from the start of ``text``."""
    preview = re.sub(r"[^a-zA-Z0-9\s]", "", text[:length])
    return re.sub(r"\s+", "_", preview).lower()


def output_filename(engine: str, voice: str, text: str, ext: str,
                    now: Optional[datetime] = None) -> str:
    """``{engine}_{voice}_{timestamp}_{preview}.{ext}``"""
    now = now or datetime.now(timezone.utc)
    timestamp = now.strftime("%Y-%m-%dT%H-%M-%S")
    voice_tag = re.sub(r"[^\w.-]+", "_", voice).strip("_")
    return f"{engine}_{voice_tag}_{timestamp}_{text_preview(text)}.{ext}"


def audio_duration(path: Path) -> Optional[float]:
    """Length of an audio file in seconds, or None if unreadable."""
    try:
        return round(sf.info(str(path)).duration, 3)
    except RuntimeError as e:
        logger.debug(f"Could not read duration of {path.name}: {e}")
        return None


class TTSEngine(ABC):
    """Abstract Text-to-Speech engine.

    Subclasses provide voice loading and the backend invocation
    (``_render``); request validation, voice resolution, output naming
    and cleanup of failed output live here.
    """

    name: str = ""
    default_voice: Optional[str] = None
    output_formats: tuple[str, ...] = ("wav",)

    def __init__(self, output_dir: str, temp_dir: str):
        self.output_dir = Path(output_dir)
        self.temp_dir = Path(temp_dir)
        self._voices: list[Voice] = []
        self._initialized = False

    @property
    def ready(self) -> bool:
        """True once initialization has succeeded."""
        return self._initialized

    @abstractmethod
    async def initialize(self) -> None:
        """Load the engine. Must be idempotent."""
        ...

    @abstractmethod
    async def is_available(self) -> bool:
        """Probe the host for this engine without changing state."""
        ...

    @abstractmethod
    async def _render(self, request: SynthesisRequest, voice: Voice,
                      output_path: Path, output_format: str) -> None:
        """Write synthesized audio for ``request`` to ``output_path``."""
        ...

    async def list_voices(self) -> list[Voice]:
        if not self._initialized:
            await self.initialize()
        return list(self._voices)

    async def cleanup(self) -> None:
        """Release engine state; the next call re-initializes."""
        self._initialized = False
        self._voices = []

    def resolve_voice(self, requested: Optional[str] = None) -> Voice:
        if not requested:
            for voice in self._voices:
                if self.default_voice and voice.matches(self.default_voice):
                    return voice
            if self._voices:
                return self._voices[0]
            raise VoiceNotFoundError("No voices available", self.name)

        for voice in self._voices:
            if voice.matches(requested):
                return voice
        raise VoiceNotFoundError(f'Voice "{requested}" not found', self.name)

    def resolve_format(self, requested: Optional[str] = None) -> str:
        if requested in self.output_formats:
            return requested
        if requested:
            logger.warning(
                f"{self.name} cannot write {requested}, "
                f"using {self.output_formats[0]}"
            )
        return self.output_formats[0]

    async def synthesize(self, request: SynthesisRequest) -> AudioResult:
        """Convert ``request.text`` to an audio file under ``output_dir``."""
        # Bad text is rejected before any probe or subprocess runs
        validate_text(request.text, self.name)
        if not self._initialized:
            await self.initialize()
        if not self._initialized:
            raise EngineNotAvailableError(f"{self.name} engine is not available", self.name)

        voice = self.resolve_voice(request.voice)
        output_format = self.resolve_format(request.output_format)
        output_path = self.output_dir / output_filename(
            self.name, voice.name, request.text, output_format
        )

        started = time.monotonic()
        try:
            self._ensure_directory(self.output_dir)
            await self._render(request, voice, output_path, output_format)
            size = self._output_size(output_path)
        except Exception as e:
            self._discard(output_path)
            if isinstance(e, TTSError):
                raise
            raise SynthesisFailedError(f"Synthesis failed: {e}", self.name) from e
        except BaseException:
            # Cancelled mid-synthesis
            self._discard(output_path)
            raise

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"{self.name}: {len(request.text)} chars -> {output_path.name} "
            f"({size} bytes, {elapsed_ms} ms)"
        )
        return AudioResult(
            file_path=str(output_path),
            format=output_format,
            size=size,
            duration=audio_duration(output_path),
            voice=voice.name,
            engine=self.name,
            text_length=len(request.text),
            synthesis_time=elapsed_ms,
        )

    def _ensure_directory(self, directory: Path) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(
                f"Failed to create directory: {directory}", self.name
            ) from e

    def _output_size(self, output_path: Path) -> int:
        try:
            size = output_path.stat().st_size
        except FileNotFoundError as e:
            raise SynthesisFailedError(
                f"No audio was written to {output_path.name}", self.name
            ) from e
        except OSError as e:
            raise FileOperationError(f"Cannot read {output_path}", self.name) from e
        if size == 0:
            raise SynthesisFailedError(
                f"Empty audio written to {output_path.name}", self.name
            )
        return size

    def _discard(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove partial output {path}: {e}")
