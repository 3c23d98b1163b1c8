"""list_voices: browse the voice catalogs of the ready engines."""

import logging
from typing import Literal, Optional

from pydantic import BaseModel, Field

from localtts.core.exceptions import TTSError
from localtts.tools.base import ToolContext, ToolResult
from localtts.tools.registry import registry
from localtts.tts.base import Voice

logger = logging.getLogger(__name__)


class ListVoicesParams(BaseModel):
    engine: Literal["macos", "kokoro", "all"] = Field(
        default="all",
        description="Filter by TTS engine (all shows voices from all engines)",
    )
    language: Optional[str] = Field(
        default=None,
        description='Filter by language code (e.g., "en-us", "es", "fr")',
    )
    gender: Optional[Literal["male", "female", "neutral"]] = Field(
        default=None,
        description="Filter by voice gender",
    )


def matches_language(voice: Voice, language: str) -> bool:
    """Substring match, or same primary subtag (``es`` matches ``es-es``)."""
    wanted = language.lower()
    have = voice.language.lower()
    return wanted in have or have.split("-")[0] == wanted.split("-")[0]


def filter_voices(voices: list[Voice], language: Optional[str] = None,
                  gender: Optional[str] = None) -> list[Voice]:
    if language:
        voices = [v for v in voices if matches_language(v, language)]
    if gender:
        voices = [v for v in voices if v.gender == gender]
    return sorted(voices, key=lambda v: (v.engine, v.name))


@registry.register(
    name="list_voices",
    description="List available voices from TTS engines with filtering options",
    params_model=ListVoicesParams,
)
async def list_voices(params: ListVoicesParams, context: ToolContext) -> ToolResult:
    collected: list[Voice] = []
    for engine in context.engines:
        if not engine.ready or params.engine not in ("all", engine.name):
            continue
        try:
            collected.extend(await engine.list_voices())
        except TTSError as e:
            logger.warning(f"Failed to get voices from {engine.name} engine: {e}")

    voices = filter_voices(collected, params.language, params.gender)

    voices_by_engine: dict[str, list[dict]] = {}
    for voice in voices:
        voices_by_engine.setdefault(voice.engine, []).append(voice.to_dict())

    summary = {
        "totalVoices": len(voices),
        "availableEngines": list(voices_by_engine),
        "languages": sorted({v.language for v in voices}),
        "genders": sorted({v.gender for v in voices if v.gender}),
    }
    return ToolResult.ok(
        summary=summary,
        voicesByEngine=voices_by_engine,
        filters=params.model_dump(),
    )
