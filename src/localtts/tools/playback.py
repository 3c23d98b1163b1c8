"""play_audio: control playback of synthesized files."""

import asyncio
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from localtts.tools.base import ToolContext, ToolResult
from localtts.tools.registry import registry


class PlayAudioParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audio_path: Optional[str] = Field(
        default=None,
        alias="audioPath",
        description="Path to audio file to play (defaults to most recent if not provided)",
    )
    action: Literal["play", "pause", "stop", "resume"] = Field(
        default="play",
        description="Audio playback action",
    )


@registry.register(
    name="play_audio",
    description="Play, pause, resume, or stop audio playback of TTS generated files",
    params_model=PlayAudioParams,
)
async def play_audio(params: PlayAudioParams, context: ToolContext) -> ToolResult:
    # stop() may wait on a player that ignores SIGTERM
    outcome = await asyncio.to_thread(
        context.player.handle, params.action, params.audio_path
    )
    return ToolResult.ok(**outcome)
