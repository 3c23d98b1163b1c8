"""health_check: report which engines work on this host."""

import logging
import platform
import sys
import time
from datetime import datetime, timezone

import psutil
from pydantic import BaseModel

from localtts import __version__
from localtts.core.exceptions import TTSError
from localtts.tools.base import ToolContext, ToolResult
from localtts.tools.registry import registry
from localtts.tts.base import TTSEngine

logger = logging.getLogger(__name__)


class HealthCheckParams(BaseModel):
    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def engine_health(engine: TTSEngine) -> dict:
    """Probe one engine and time how long it takes to answer."""
    started = time.monotonic()
    try:
        available = engine.ready or await engine.is_available()
        if not available:
            return {
                "engine": engine.name,
                "available": False,
                "lastTest": _now(),
                "error": "Engine not available on this system",
            }
        voices = await engine.list_voices()
    except TTSError as e:
        return {
            "engine": engine.name,
            "available": False,
            "lastTest": _now(),
            "error": str(e),
        }

    return {
        "engine": engine.name,
        "available": engine.ready,
        "voiceCount": len(voices),
        "performance": {
            "responseTime": int((time.monotonic() - started) * 1000),
            "memoryUsage": psutil.Process().memory_info().rss,
        },
        "lastTest": _now(),
        **({} if engine.ready else {"error": "Engine failed to initialize"}),
    }


@registry.register(
    name="health_check",
    description="Check the health and availability of TTS engines",
    params_model=HealthCheckParams,
)
async def health_check(params: HealthCheckParams, context: ToolContext) -> ToolResult:
    engine_results = [await engine_health(engine) for engine in context.engines]

    memory = psutil.Process().memory_info()
    overall = {
        "timestamp": _now(),
        "version": __version__,
        "availableEngines": sum(1 for r in engine_results if r["available"]),
        "totalEngines": len(engine_results),
        "playback": context.player.state.to_dict(),
        "systemInfo": {
            "platform": sys.platform,
            "platformRelease": platform.platform(),
            "pythonVersion": platform.python_version(),
            "memoryUsage": {"rss": memory.rss, "vms": memory.vms},
            "uptime": round(context.uptime, 3),
        },
    }
    return ToolResult.ok(overallHealth=overall, engineHealth=engine_results)
