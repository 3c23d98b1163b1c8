"""Constants for local-tts."""

from pathlib import Path

# core/ -> localtts/ -> src/ -> project root
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

# Default paths
CONFIG_DIR = PROJECT_ROOT / "config"
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_OUTPUT_DIR = Path.home() / "TTS-Output"
DEFAULT_TEMP_DIR = Path.home() / "TTS-Temp"

# Engines
ENGINE_MACOS = "macos"
ENGINE_KOKORO = "kokoro"
ENGINE_AUTO = "auto"
ENGINE_NAMES = (ENGINE_MACOS, ENGINE_KOKORO)
# "auto" tries these in order, quality first
AUTO_ENGINE_PREFERENCE = (ENGINE_KOKORO, ENGINE_MACOS)

OUTPUT_FORMATS = ("wav", "mp3", "m4a", "aiff")
QUALITY_TIERS = ("fast", "balanced", "high")
GENDERS = ("male", "female", "neutral")
DEFAULT_QUALITY = "balanced"

# Request limits
MAX_TEXT_LENGTH = 50_000
MIN_SPEED = 0.1
MAX_SPEED = 3.0

# `say` words-per-minute mapping
DEFAULT_RATE = 200
MIN_RATE = 80
MAX_RATE = 400

# Subprocess deadlines (seconds)
SAY_TIMEOUT = 300
KOKORO_TIMEOUT = 30
KOKORO_CHECK_TIMEOUT = 30
INTERPRETER_PROBE_TIMEOUT = 5

# Printed by generated scripts on success
SUCCESS_MARKER = "SUCCESS"
