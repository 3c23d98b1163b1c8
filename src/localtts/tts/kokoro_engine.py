"""Kokoro neural TTS engine, driven through an external Python interpreter.

The kokoro package (and its torch stack) is not imported into this
process. Each request writes a small synthesis script to the temp
directory and runs it with whichever interpreter has kokoro installed.
"""

import logging
import os
import uuid
from pathlib import Path
from string import Template
from typing import Optional

from localtts.core.constants import (
    ENGINE_KOKORO,
    INTERPRETER_PROBE_TIMEOUT,
    KOKORO_CHECK_TIMEOUT,
    KOKORO_TIMEOUT,
    SUCCESS_MARKER,
)
from localtts.core.exceptions import (
    EngineNotAvailableError,
    FileOperationError,
    OperationTimeoutError,
    SynthesisFailedError,
)
from localtts.tts.base import SynthesisRequest, TTSEngine, Voice
from localtts.tts.process import run_process

logger = logging.getLogger(__name__)

PYTHON_CANDIDATES = (
    "python3",
    "python",
    "/usr/bin/python3",
    "/opt/homebrew/bin/python3",
    "/opt/miniconda3/bin/python3",
)

DEFAULT_REPO_ID = "hexgrad/Kokoro-82M"
DEFAULT_SAMPLE_RATE = 24000

# Kokoro pipeline language code -> (language tag, language name)
LANGUAGES = {
    "a": ("en-us", "American English"),
    "b": ("en-gb", "British English"),
    "e": ("es-es", "Spanish"),
    "f": ("fr-fr", "French"),
    "h": ("hi-in", "Hindi"),
    "i": ("it-it", "Italian"),
    "j": ("ja-jp", "Japanese"),
    "p": ("pt-br", "Brazilian Portuguese"),
    "z": ("zh-cn", "Mandarin Chinese"),
}

# Voice codes shipped with Kokoro-82M: <lang><gender>_<name>
VOICE_CODES = (
    "af_heart", "af_alloy", "af_aoede", "af_bella", "af_jessica", "af_kore",
    "af_nicole", "af_nova", "af_river", "af_sarah", "af_sky",
    "am_adam", "am_echo", "am_eric", "am_fenrir", "am_liam", "am_michael",
    "am_onyx", "am_puck",
    "bf_alice", "bf_emma", "bf_isabella", "bf_lily",
    "bm_daniel", "bm_fable", "bm_george", "bm_lewis",
    "ef_dora", "em_alex",
    "ff_siwis",
    "hf_alpha", "hf_beta", "hm_omega", "hm_psi",
    "if_sara", "im_nicola",
    "jf_alpha", "jf_gongitsune", "jm_kumo",
    "pf_dora", "pm_alex",
    "zf_xiaobei", "zf_xiaoni", "zm_yunjian", "zm_yunxi",
)

IMPORT_CHECK = f"import kokoro, soundfile; print({SUCCESS_MARKER!r})"

SCRIPT_TEMPLATE = Template('''\
import sys

import numpy as np
import soundfile as sf
from kokoro import KPipeline

TEXT = $text
VOICE = $voice
LANG_CODE = $lang_code
SPEED = $speed
REPO_ID = $repo_id
SAMPLE_RATE = $sample_rate
OUTPUT_PATH = $output_path


def main():
    pipeline = KPipeline(lang_code=LANG_CODE, repo_id=REPO_ID)
    segments = []
    for result in pipeline(TEXT, voice=VOICE, speed=SPEED):
        audio = result[-1] if isinstance(result, tuple) else getattr(result, "audio", None)
        if audio is None:
            continue
        if hasattr(audio, "detach"):
            audio = audio.detach().cpu().numpy()
        segments.append(np.asarray(audio, dtype=np.float32).reshape(-1))
    if not segments:
        raise RuntimeError("pipeline produced no audio")

    audio = np.concatenate(segments)
    peak = float(np.max(np.abs(audio)))
    if peak > 1.0:
        audio = audio / peak
    sf.write(OUTPUT_PATH, audio, SAMPLE_RATE)


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    print($marker)
''')


def _voice_from_code(code: str) -> Voice:
    lang_code, gender_code, short_name = code[0], code[1], code[3:]
    language, language_name = LANGUAGES[lang_code]
    gender = "female" if gender_code == "f" else "male"
    return Voice(
        id=f"kokoro-{code}",
        name=code.upper(),
        language=language,
        gender=gender,
        description=f"{short_name.capitalize()} - {language_name} {gender}",
        engine=ENGINE_KOKORO,
        quality="high",
    )


KOKORO_VOICES = tuple(_voice_from_code(code) for code in VOICE_CODES)


def voice_code(voice: Voice) -> str:
    """Kokoro's own identifier for a catalog voice (``af_sarah``)."""
    return voice.id[len("kokoro-"):]


def build_script(text: str, voice: Voice, output_path: Path, speed: float = 1.0,
                 repo_id: str = DEFAULT_REPO_ID,
                 sample_rate: int = DEFAULT_SAMPLE_RATE) -> str:
    """Render the one-off synthesis script. Values are embedded as literals."""
    code = voice_code(voice)
    return SCRIPT_TEMPLATE.substitute(
        text=repr(text),
        voice=repr(code),
        lang_code=repr(code[0]),
        speed=repr(float(speed or 1.0)),
        repo_id=repr(repo_id),
        sample_rate=repr(int(sample_rate)),
        output_path=repr(str(output_path)),
        marker=repr(SUCCESS_MARKER),
    )


def build_environment() -> dict[str, str]:
    env = dict(os.environ)
    env.update({
        "PYTHONUNBUFFERED": "1",
        "PYTHONIOENCODING": "utf-8",
        "PYTHONDONTWRITEBYTECODE": "1",
        "PYTHONWARNINGS": "ignore",
    })
    return env


class KokoroEngine(TTSEngine):
    """High-quality multilingual TTS using Kokoro-82M in a child interpreter."""

    name = ENGINE_KOKORO
    output_formats = ("wav", "aiff")

    def __init__(
        self,
        output_dir: str,
        temp_dir: str,
        python_executable: Optional[str] = None,
        timeout: float = KOKORO_TIMEOUT,
        check_timeout: float = KOKORO_CHECK_TIMEOUT,
        probe_timeout: float = INTERPRETER_PROBE_TIMEOUT,
        default_voice: str = "af_sarah",
        repo_id: str = DEFAULT_REPO_ID,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
    ):
        super().__init__(output_dir, temp_dir)
        self.python_override = python_executable
        self.timeout = timeout
        self.check_timeout = check_timeout
        self.probe_timeout = probe_timeout
        self.default_voice = default_voice
        self.repo_id = repo_id
        self.sample_rate = sample_rate
        self.python_executable: Optional[str] = None
        self._attempted = False

    def _candidates(self) -> list[str]:
        candidates = [self.python_override] if self.python_override else []
        candidates += [c for c in PYTHON_CANDIDATES if c not in candidates]
        return candidates

    async def _probe_interpreter(self, executable: str) -> bool:
        try:
            result = await run_process(
                [executable, "--version"],
                timeout=self.probe_timeout,
                engine=self.name,
                env=build_environment(),
            )
        except (OSError, OperationTimeoutError) as e:
            logger.debug(f"Interpreter {executable} unusable: {e}")
            return False
        return result.ok

    async def find_interpreter(self) -> Optional[str]:
        """First candidate interpreter that answers ``--version``."""
        for candidate in self._candidates():
            if await self._probe_interpreter(candidate):
                return candidate
        return None

    async def check_package(self, executable: str) -> Optional[str]:
        """Return None if kokoro imports under ``executable``, else the reason."""
        try:
            result = await run_process(
                [executable, "-c", IMPORT_CHECK],
                timeout=self.check_timeout,
                engine=self.name,
                env=build_environment(),
            )
        except (OSError, OperationTimeoutError) as e:
            return str(e)
        if result.ok and result.has_line(SUCCESS_MARKER):
            return None
        return (result.stderr or result.stdout).strip() or f"exit code {result.returncode}"

    async def is_available(self) -> bool:
        executable = await self.find_interpreter()
        if executable is None:
            return False
        return await self.check_package(executable) is None

    async def initialize(self) -> None:
        """Discover the interpreter and verify kokoro.

        Failures are logged, not raised: the engine stays registered but
        not ready.
        """
        if self._attempted:
            return
        self._attempted = True

        executable = await self.find_interpreter()
        if executable is None:
            logger.warning("Kokoro unavailable: no working Python interpreter found")
            return

        problem = await self.check_package(executable)
        if problem is not None:
            logger.warning(
                f"Kokoro unavailable under {executable}: {problem}. "
                "Install with: pip install kokoro soundfile"
            )
            return

        self.python_executable = executable
        self._voices = list(KOKORO_VOICES)
        self._initialized = True
        logger.info(f"Kokoro engine ready (python: {executable})")

    async def cleanup(self) -> None:
        await super().cleanup()
        self._attempted = False
        self.python_executable = None

    async def _render(self, request: SynthesisRequest, voice: Voice,
                      output_path: Path, output_format: str) -> None:
        if not self.python_executable:
            raise EngineNotAvailableError(
                "Python interpreter not detected; initialization failed", self.name
            )

        self._ensure_directory(self.temp_dir)
        script_path = self.temp_dir / f"kokoro_{uuid.uuid4().hex}.py"
        script = build_script(
            request.text, voice, output_path,
            speed=request.speed,
            repo_id=self.repo_id,
            sample_rate=self.sample_rate,
        )
        try:
            script_path.write_text(script, encoding="utf-8")
        except OSError as e:
            raise FileOperationError(f"Cannot write {script_path}", self.name) from e

        try:
            result = await run_process(
                [self.python_executable, str(script_path)],
                timeout=self.timeout,
                engine=self.name,
                env=build_environment(),
                cwd=str(self.temp_dir),
            )
        except OSError as e:
            raise EngineNotAvailableError(
                f"Failed to start {self.python_executable}: {e}", self.name
            ) from e
        finally:
            script_path.unlink(missing_ok=True)

        if not (result.ok and result.has_line(SUCCESS_MARKER)):
            detail = (result.stderr or result.stdout).strip()[-2000:]
            raise SynthesisFailedError(
                f"Kokoro synthesis failed (exit code {result.returncode}): {detail}",
                self.name,
            )
