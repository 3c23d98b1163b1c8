"""Factory for creating TTS engines based on config."""

import logging
from typing import Iterable, Sequence

from localtts.core.config import AppConfig
from localtts.core.constants import (
    ENGINE_KOKORO,
    ENGINE_MACOS,
    INTERPRETER_PROBE_TIMEOUT,
    KOKORO_CHECK_TIMEOUT,
    KOKORO_TIMEOUT,
    SAY_TIMEOUT,
)
from localtts.core.exceptions import TTSError
from localtts.tts.base import TTSEngine

logger = logging.getLogger(__name__)


def create_engines(config: AppConfig) -> list[TTSEngine]:
    """Build every enabled engine, in registration order."""
    engines: list[TTSEngine] = []

    if config.engine_enabled(ENGINE_MACOS):
        from localtts.tts.macos_engine import SayEngine

        macos_cfg = config.engine_settings(ENGINE_MACOS)
        engines.append(SayEngine(
            config.output_dir,
            config.temp_dir,
            timeout=macos_cfg.get("timeout", SAY_TIMEOUT),
            default_voice=macos_cfg.get("default_voice", "Alex"),
        ))

    if config.engine_enabled(ENGINE_KOKORO):
        from localtts.tts.kokoro_engine import KokoroEngine

        kokoro_cfg = config.engine_settings(ENGINE_KOKORO)
        engines.append(KokoroEngine(
            config.output_dir,
            config.temp_dir,
            python_executable=config.python_executable,
            timeout=kokoro_cfg.get("timeout", KOKORO_TIMEOUT),
            check_timeout=kokoro_cfg.get("check_timeout", KOKORO_CHECK_TIMEOUT),
            probe_timeout=kokoro_cfg.get("probe_timeout", INTERPRETER_PROBE_TIMEOUT),
            default_voice=kokoro_cfg.get("default_voice", "af_sarah"),
            repo_id=kokoro_cfg.get("repo_id", "hexgrad/Kokoro-82M"),
            sample_rate=kokoro_cfg.get("sample_rate", 24000),
        ))

    return engines


async def start_engines(engines: Sequence[TTSEngine]) -> None:
    """Initialize each available engine; failures never propagate."""
    for engine in engines:
        try:
            if not await engine.is_available():
                logger.warning(f"{engine.name} engine not available on this system")
                continue
            await engine.initialize()
        except TTSError as e:
            logger.warning(f"Failed to initialize {engine.name} engine: {e}")
            continue
        if engine.ready:
            logger.info(f"{engine.name} engine initialized")

    ready = [engine.name for engine in engines if engine.ready]
    if ready:
        logger.info(f"TTS engines ready: {', '.join(ready)}")
    else:
        logger.warning("No TTS engines available")


async def cleanup_engines(engines: Iterable[TTSEngine]) -> None:
    for engine in engines:
        try:
            await engine.cleanup()
        except Exception as e:
            logger.error(f"Error during {engine.name} cleanup: {e}")
