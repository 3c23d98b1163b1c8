"""macOS `say` TTS engine.

Runs the system speech synthesizer once per request and writes its
output file straight into the output directory.
"""

import logging
import re
import shutil
import sys
from pathlib import Path
from typing import Optional

from localtts.core.constants import (
    DEFAULT_RATE,
    ENGINE_MACOS,
    INTERPRETER_PROBE_TIMEOUT,
    MAX_RATE,
    MIN_RATE,
    SAY_TIMEOUT,
)
from localtts.core.exceptions import EngineNotAvailableError, SynthesisFailedError
from localtts.tts.base import SynthesisRequest, TTSEngine, Voice
from localtts.tts.process import run_process

logger = logging.getLogger(__name__)

SAY_COMMAND = "say"

# "Alex                en_US    # Most people recognize me by my voice."
VOICE_LINE = re.compile(r"^(.+?)\s+([a-z]{2,3}_[A-Z0-9]{2,3})\s*#\s*(.*)$")

MALE_HINTS = (
    "male", "man", "masculine", "alex", "daniel", "fred", "jorge", "juan",
    "diego", "thomas", "jacques", "xander",
)
FEMALE_HINTS = (
    "female", "woman", "feminine", "allison", "ava", "kate", "kathy",
    "samantha", "susan", "tessa", "victoria", "karen", "monica", "paulina",
    "alice", "amélie", "anna", "ellen", "joana", "luciana",
)

# Extra `say` flags per output container
FORMAT_FLAGS = {
    "aiff": [],
    "wav": ["--file-format=WAVE", "--data-format=LEI16"],
    "m4a": ["--file-format=m4af", "--data-format=aac"],
}


def speed_to_rate(speed: Optional[float]) -> int:
    """Map a speed multiplier to `say` words per minute."""
    if not speed:
        return DEFAULT_RATE
    rate = int(round(speed * DEFAULT_RATE))
    return max(MIN_RATE, min(MAX_RATE, rate))


def infer_gender(name: str, description: str) -> str:
    # Whole words only: "female" must not hit "male", nor "samantha" hit "man"
    words = set(re.findall(r"\w+", f"{name} {description}".lower()))
    if words.intersection(MALE_HINTS):
        return "male"
    if words.intersection(FEMALE_HINTS):
        return "female"
    return "neutral"


def parse_voices(output: str) -> list[Voice]:
    """Parse the listing printed by ``say -v ?``."""
    voices = []
    for line in output.splitlines():
        match = VOICE_LINE.match(line.strip())
        if not match:
            continue
        name, locale, description = (part.strip() for part in match.groups())
        voices.append(Voice(
            id=f"macos-{name.lower().replace(' ', '-')}",
            name=name,
            language=locale.lower().replace("_", "-"),
            gender=infer_gender(name, description),
            description=description,
            engine=ENGINE_MACOS,
            quality="balanced",
        ))
    return voices


class SayEngine(TTSEngine):
    """English and multilingual TTS using the macOS `say` command."""

    name = ENGINE_MACOS
    output_formats = ("aiff", "wav", "m4a")

    def __init__(self, output_dir: str, temp_dir: str,
                 timeout: float = SAY_TIMEOUT, default_voice: str = "Alex"):
        super().__init__(output_dir, temp_dir)
        self.timeout = timeout
        self.default_voice = default_voice

    async def is_available(self) -> bool:
        return sys.platform == "darwin" and shutil.which(SAY_COMMAND) is not None

    async def initialize(self) -> None:
        if self._initialized:
            return
        if not await self.is_available():
            raise EngineNotAvailableError(
                "macOS say engine is only available on macOS", self.name
            )

        try:
            result = await run_process(
                [SAY_COMMAND, "-v", "?"],
                timeout=INTERPRETER_PROBE_TIMEOUT,
                engine=self.name,
            )
        except OSError as e:
            raise EngineNotAvailableError("say command not available", self.name) from e
        if not result.ok:
            raise EngineNotAvailableError(
                f"Failed to load macOS voices: {result.stderr.strip()}", self.name
            )

        self._voices = parse_voices(result.stdout)
        self._initialized = True
        logger.info(f"macOS say engine ready with {len(self._voices)} voices")

    async def _render(self, request: SynthesisRequest, voice: Voice,
                      output_path: Path, output_format: str) -> None:
        args = [
            SAY_COMMAND,
            "-v", voice.name,
            "-r", str(speed_to_rate(request.speed)),
            "-o", str(output_path),
            *FORMAT_FLAGS[output_format],
            "--", request.text,
        ]
        result = await run_process(args, timeout=self.timeout, engine=self.name)
        if not result.ok:
            raise SynthesisFailedError(
                f"say exited with code {result.returncode}: {result.stderr.strip()}",
                self.name,
            )
