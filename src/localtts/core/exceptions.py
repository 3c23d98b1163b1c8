"""Exception hierarchy for local-tts.

Every synthesis-side error carries a stable ``code`` that is reported to
tool clients, and the name of the engine that raised it when there is one.
"""

from typing import Any, Optional


class LocalTTSError(Exception):
    """Base exception for all local-tts errors."""


class ConfigError(LocalTTSError):
    """Configuration loading or validation error."""


class TTSError(LocalTTSError):
    """Text-to-speech error reported back to the client."""

    code = "SYNTHESIS_FAILED"

    def __init__(self, message: str, engine: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.engine = engine

    @property
    def cause(self) -> Optional[BaseException]:
        """Underlying exception, if this error wraps one."""
        return self.__cause__

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.engine:
            data["engine"] = self.engine
        return data


class EngineNotAvailableError(TTSError):
    code = "ENGINE_NOT_AVAILABLE"


class VoiceNotFoundError(TTSError):
    code = "VOICE_NOT_FOUND"


class TextTooLongError(TTSError):
    code = "TEXT_TOO_LONG"


class InvalidParametersError(TTSError):
    code = "INVALID_PARAMETERS"

    def __init__(
        self,
        message: str,
        engine: Optional[str] = None,
        details: Optional[list] = None,
    ):
        super().__init__(message, engine)
        self.details = details or []

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.details:
            data["details"] = self.details
        return data


class SynthesisFailedError(TTSError):
    code = "SYNTHESIS_FAILED"


class FileOperationError(TTSError):
    code = "FILE_OPERATION_FAILED"


class AudioFileNotFoundError(TTSError):
    code = "FILE_NOT_FOUND"


class OperationTimeoutError(TTSError):
    code = "TIMEOUT"


class PlaybackError(TTSError):
    code = "PLAYBACK_FAILED"
