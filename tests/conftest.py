"""Shared test fixtures for local-tts."""

import io
import wave
from pathlib import Path

import pytest

from localtts.audio.player import AudioPlayer
from localtts.core.config import AppConfig
from localtts.tools.base import ToolContext
from localtts.tts.base import SynthesisRequest, TTSEngine, Voice


def make_wav(seconds: float = 0.5, sample_rate: int = 16000) -> bytes:
    """Silent mono 16-bit WAV."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(b"\x00\x00" * int(seconds * sample_rate))
    return buf.getvalue()


class FakeEngine(TTSEngine):
    """In-process engine that writes a WAV instead of spawning anything."""

    output_formats = ("wav",)

    def __init__(self, output_dir, temp_dir, name="kokoro", ready=True,
                 available=True, fail_with=None, payload=None):
        super().__init__(output_dir, temp_dir)
        self.name = name
        self.available = available
        self.fail_with = fail_with
        self.payload = make_wav() if payload is None else payload
        self.default_voice = "Default"
        self.rendered: list[SynthesisRequest] = []
        self.initialize_calls = 0
        if ready:
            self._load()

    def _load(self):
        self._voices = [
            Voice(id=f"{self.name}-default", name="Default", language="en-us",
                  gender="female", engine=self.name, quality="high"),
            Voice(id=f"{self.name}-pierre", name="Pierre", language="fr-fr",
                  gender="male", engine=self.name, quality="high"),
        ]
        self._initialized = True

    async def is_available(self) -> bool:
        return self.available

    async def initialize(self) -> None:
        self.initialize_calls += 1
        if self.available and not self._initialized:
            self._load()

    async def _render(self, request, voice, output_path: Path, output_format):
        self.rendered.append(request)
        output_path.write_bytes(self.payload)
        if self.fail_with is not None:
            raise self.fail_with


@pytest.fixture
def app_config(tmp_path):
    """Config pointing all file output into the test's tmp dir."""
    return AppConfig(
        output_dir=str(tmp_path / "output"),
        temp_dir=str(tmp_path / "temp"),
        logging={"level": "DEBUG", "file": None},
    )


@pytest.fixture
def fake_engine(app_config):
    return FakeEngine(app_config.output_dir, app_config.temp_dir, name="kokoro")


@pytest.fixture
def fake_macos(app_config):
    return FakeEngine(app_config.output_dir, app_config.temp_dir, name="macos")


@pytest.fixture
def player():
    return AudioPlayer(command=["fake-player"])


@pytest.fixture
def tool_context(app_config, fake_engine, fake_macos, player):
    return ToolContext(
        config=app_config,
        engines=[fake_macos, fake_engine],
        player=player,
    )


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "clip.wav"
    path.write_bytes(make_wav())
    return path
