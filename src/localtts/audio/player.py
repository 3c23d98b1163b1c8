"""Audio playback through an external player process.

At most one player process is tracked. Starting playback always stops
the previous one first; pause and resume are SIGSTOP/SIGCONT.
"""

import logging
import shutil
import signal
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from localtts.core.exceptions import (
    AudioFileNotFoundError,
    InvalidParametersError,
    PlaybackError,
)

logger = logging.getLogger(__name__)

PLAYING = "playing"
PAUSED = "paused"
STOPPED = "stopped"

ACTIONS = ("play", "pause", "resume", "stop")

# Tried in order when no player is configured (non-macOS hosts)
PLAYER_CANDIDATES = (
    ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"],
    ["paplay"],
    ["aplay", "-q"],
)

# Seconds to wait for the player to exit after SIGTERM
STOP_TIMEOUT = 2


@dataclass
class PlaybackState:
    """Snapshot of what the player is doing."""
    status: str = STOPPED
    file: Optional[str] = None
    most_recent_file: Optional[str] = None

    def to_dict(self) -> dict:
        return {"status": self.status, "file": self.file, "isPaused": self.status == PAUSED}


def default_player_command() -> Optional[list[str]]:
    if sys.platform == "darwin":
        return ["afplay"]
    for candidate in PLAYER_CANDIDATES:
        if shutil.which(candidate[0]):
            return list(candidate)
    return None


class AudioPlayer:
    """Plays audio files with an external command, one at a time."""

    def __init__(self, command: Optional[list[str]] = None):
        self._command = list(command) if command else None
        self._process: Optional[subprocess.Popen] = None
        self._current_file: Optional[str] = None
        self._most_recent_file: Optional[str] = None
        self._paused = False

    @property
    def state(self) -> PlaybackState:
        self._reap()
        if self._process is None:
            status = STOPPED
        else:
            status = PAUSED if self._paused else PLAYING
        return PlaybackState(
            status=status,
            file=self._current_file,
            most_recent_file=self._most_recent_file,
        )

    def remember(self, file_path: str) -> None:
        """Record the latest synthesized file as the default for play()."""
        self._most_recent_file = file_path

    def handle(self, action: str = "play", audio_path: Optional[str] = None) -> dict:
        """Dispatch a play_audio action."""
        if action == "play":
            return self.play(audio_path)
        if action == "pause":
            return self.pause()
        if action == "resume":
            return self.resume()
        if action == "stop":
            return self.stop()
        raise InvalidParametersError(f"Invalid action: {action}")

    def play(self, audio_path: Optional[str] = None) -> dict:
        file_path = audio_path or self._most_recent_file
        if not file_path:
            raise AudioFileNotFoundError(
                "No audio file specified and no recent file available"
            )
        if not Path(file_path).is_file():
            raise AudioFileNotFoundError(f"Audio file not found: {file_path}")

        command = self._command or default_player_command()
        if not command:
            raise PlaybackError(
                "No audio player found (install ffmpeg, pulseaudio-utils or alsa-utils)"
            )

        self.stop()
        try:
            self._process = subprocess.Popen(
                [*command, file_path],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise PlaybackError(f"Failed to start audio playback: {e}") from e

        self._current_file = file_path
        self._most_recent_file = file_path
        self._paused = False
        logger.info(f"Playing {file_path} with {command[0]} (pid {self._process.pid})")
        return {"message": "Started playing audio file", "status": PLAYING, "file": file_path}

    def pause(self) -> dict:
        self._reap()
        if self._process is None:
            return {"message": "No active playback to pause", "status": STOPPED}
        if self._paused:
            return {"message": "Playback is already paused", "status": PAUSED}

        if not self._signal("SIGSTOP"):
            return {"message": "No active playback to pause", "status": STOPPED}
        self._paused = True
        return {"message": "Audio playback paused", "status": PAUSED}

    def resume(self) -> dict:
        self._reap()
        if self._process is None or not self._paused:
            return {
                "message": "No paused playback to resume",
                "status": PLAYING if self._process is not None else STOPPED,
            }

        if not self._signal("SIGCONT"):
            return {"message": "No paused playback to resume", "status": STOPPED}
        self._paused = False
        return {"message": "Audio playback resumed", "status": PLAYING}

    def stop(self) -> dict:
        self._reap()
        if self._process is None:
            return {"message": "No active playback to stop", "status": STOPPED}

        process = self._process
        try:
            process.terminate()
            if self._paused:
                # A stopped process only acts on SIGTERM once continued
                self._signal("SIGCONT")
            process.wait(timeout=STOP_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning(f"Player pid {process.pid} ignored SIGTERM, killing")
            process.kill()
            process.wait()
        except ProcessLookupError:
            pass
        finally:
            self._clear()

        return {"message": "Audio playback stopped", "status": STOPPED}

    def cleanup(self) -> None:
        """Release resources."""
        self.stop()

    def _signal(self, name: str) -> bool:
        """Send a signal to the player; False if it has already gone."""
        signum = getattr(signal, name, None)
        if signum is None:
            raise PlaybackError(f"{name} is not supported on this platform")
        try:
            self._process.send_signal(signum)
        except ProcessLookupError:
            self._clear()
            return False
        return True

    def _reap(self) -> None:
        """Forget a player process that has already exited."""
        if self._process is not None and self._process.poll() is not None:
            logger.debug(f"Player pid {self._process.pid} finished")
            self._clear()

    def _clear(self) -> None:
        self._process = None
        self._current_file = None
        self._paused = False
