"""synthesize_text: convert text to an audio file."""

import logging
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from localtts.core.constants import MAX_SPEED, MIN_SPEED
from localtts.tools.base import ToolContext, ToolResult
from localtts.tools.registry import registry
from localtts.tts.base import SynthesisRequest
from localtts.tts.router import select_engine, validate_request

logger = logging.getLogger(__name__)


class SynthesizeTextParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Length is checked by the router so over-long text reports TEXT_TOO_LONG
    text: str = Field(description="Text to convert to speech (max 50,000 characters)")
    voice: Optional[str] = Field(
        default=None,
        description="Voice to use for synthesis (optional, uses default if not specified)",
    )
    engine: Optional[Literal["macos", "kokoro", "auto"]] = Field(
        default=None,
        description="TTS engine to use (auto selects best engine for the request)",
    )
    output_format: Optional[Literal["wav", "mp3", "m4a", "aiff"]] = Field(
        default=None,
        alias="outputFormat",
        description="Audio output format (defaults to the engine's native format)",
    )
    speed: float = Field(
        default=1.0,
        ge=MIN_SPEED,
        le=MAX_SPEED,
        description="Speech speed multiplier (1.0 = normal speed)",
    )
    quality: Optional[Literal["fast", "balanced", "high"]] = Field(
        default=None,
        description="Synthesis quality vs speed trade-off",
    )


@registry.register(
    name="synthesize_text",
    description="Convert text to speech using local TTS engines (macOS Say or Kokoro TTS)",
    params_model=SynthesizeTextParams,
)
async def synthesize_text(params: SynthesizeTextParams, context: ToolContext) -> ToolResult:
    request = SynthesisRequest(
        text=params.text,
        voice=params.voice,
        engine=params.engine or context.config.default_engine,
        output_format=params.output_format,
        speed=params.speed,
        quality=params.quality or context.config.default_quality,
    )
    validate_request(request)

    engine = select_engine(request.engine, context.engines)
    result = await engine.synthesize(request)
    context.player.remember(result.file_path)

    return ToolResult.ok(
        result=result.to_dict(),
        playback="Use play_audio tool to play this file",
    )
