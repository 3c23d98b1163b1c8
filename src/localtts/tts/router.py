"""Request validation and engine selection."""

import logging
from typing import Optional, Sequence

from localtts.core.constants import (
    AUTO_ENGINE_PREFERENCE,
    ENGINE_AUTO,
    ENGINE_NAMES,
    MAX_SPEED,
    MIN_SPEED,
    OUTPUT_FORMATS,
    QUALITY_TIERS,
)
from localtts.core.exceptions import EngineNotAvailableError, InvalidParametersError
from localtts.tts.base import SynthesisRequest, TTSEngine, validate_text

logger = logging.getLogger(__name__)


def validate_request(request: SynthesisRequest) -> None:
    """Reject a request before any engine or subprocess is involved."""
    validate_text(request.text)
    if request.speed is None or not MIN_SPEED <= request.speed <= MAX_SPEED:
        raise InvalidParametersError(
            f"Speed must be between {MIN_SPEED} and {MAX_SPEED}, got {request.speed}"
        )
    if request.engine not in (None, ENGINE_AUTO, *ENGINE_NAMES):
        raise InvalidParametersError(f"Unknown engine: {request.engine}")
    if request.output_format not in (None, *OUTPUT_FORMATS):
        raise InvalidParametersError(f"Unsupported output format: {request.output_format}")
    if request.quality not in (None, *QUALITY_TIERS):
        raise InvalidParametersError(f"Unknown quality: {request.quality}")


def find_engine(name: str, engines: Sequence[TTSEngine]) -> Optional[TTSEngine]:
    for engine in engines:
        if engine.name == name:
            return engine
    return None


def select_engine(name: Optional[str], engines: Sequence[TTSEngine]) -> TTSEngine:
    """Pick the engine for a request.

    An explicit name must match a ready engine. ``auto`` (or None) walks
    AUTO_ENGINE_PREFERENCE and takes the first ready engine.
    """
    ready = [engine for engine in engines if engine.ready]

    if name and name != ENGINE_AUTO:
        engine = find_engine(name, ready)
        if engine is None:
            raise EngineNotAvailableError(f"Engine '{name}' is not available", name)
        return engine

    for preferred in AUTO_ENGINE_PREFERENCE:
        engine = find_engine(preferred, ready)
        if engine is not None:
            logger.debug(f"auto selected {engine.name}")
            return engine
    raise EngineNotAvailableError("No available TTS engines")
