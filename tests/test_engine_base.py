"""Tests for the shared engine behaviour: validation, naming and failed-output cleanup."""

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import pytest

from localtts.core.exceptions import (
    EngineNotAvailableError,
    InvalidParametersError,
    SynthesisFailedError,
    TextTooLongError,
    VoiceNotFoundError,
)
from localtts.tts.base import (
    AudioResult,
    SynthesisRequest,
    output_filename,
    text_preview,
    validate_text,
)

from conftest import FakeEngine


class TestValidateText:
    def test_accepts_normal_text(self):
        validate_text("Hello world")

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_rejects_empty(self, text):
        with pytest.raises(InvalidParametersError, match="empty"):
            validate_text(text)

    def test_limit_is_inclusive(self):
        validate_text("a" * 50_000)
        with pytest.raises(TextTooLongError):
            validate_text("a" * 50_001)


class TestOutputFilename:
    def test_preview_slug(self):
        assert text_preview("Hello, World! How are you?") == "hello_world_how_are_you"

    def test_preview_truncated_to_thirty_chars(self):
        assert len(text_preview("x" * 100)) == 30

    def test_pattern(self):
        now = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)
        name = output_filename("kokoro", "AF_SARAH", "Hello world", "wav", now=now)
        assert name == "kokoro_AF_SARAH_2024-03-05T14-07-09_hello_world.wav"

    def test_voice_with_spaces_is_sanitized(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        name = output_filename("macos", "Bad News", "hi", "aiff", now=now)
        assert name.startswith("macos_Bad_News_")
        assert " " not in name


class TestAudioResult:
    def test_to_dict_shape(self):
        result = AudioResult(
            file_path="/tmp/a.wav", format="wav", size=10, voice="Alex",
            engine="macos", text_length=5, synthesis_time=42, duration=1.5,
        )
        assert result.to_dict() == {
            "filePath": "/tmp/a.wav",
            "format": "wav",
            "duration": 1.5,
            "size": 10,
            "metadata": {
                "voice": "Alex",
                "engine": "macos",
                "textLength": 5,
                "synthesisTime": 42,
            },
        }


class TestResolveVoice:
    def test_default_voice(self, fake_engine):
        assert fake_engine.resolve_voice().name == "Default"

    def test_match_by_name_case_insensitive(self, fake_engine):
        assert fake_engine.resolve_voice("pierre").name == "Pierre"

    def test_match_by_id(self, fake_engine):
        assert fake_engine.resolve_voice("kokoro-pierre").name == "Pierre"

    def test_unknown_voice(self, fake_engine):
        with pytest.raises(VoiceNotFoundError, match='"Nobody"'):
            fake_engine.resolve_voice("Nobody")

    def test_no_voices(self, tmp_path):
        engine = FakeEngine(tmp_path, tmp_path, ready=False)
        with pytest.raises(VoiceNotFoundError):
            engine.resolve_voice()


class TestSynthesize:
    @pytest.mark.asyncio
    async def test_writes_file(self, fake_engine, app_config):
        result = await fake_engine.synthesize(SynthesisRequest(text="Hello world"))
        path = Path(result.file_path)
        assert path.exists()
        assert path.parent == Path(app_config.output_dir)
        assert path.name.startswith("kokoro_Default_")
        assert path.name.endswith("_hello_world.wav")
        assert result.size == path.stat().st_size
        assert result.text_length == len("Hello world")
        assert result.duration == pytest.approx(0.5, abs=0.01)

    @pytest.mark.asyncio
    async def test_unsupported_format_falls_back(self, fake_engine):
        result = await fake_engine.synthesize(
            SynthesisRequest(text="Hello", output_format="m4a")
        )
        assert result.format == "wav"
        assert result.file_path.endswith(".wav")

    @pytest.mark.asyncio
    async def test_too_long_never_renders(self, fake_engine):
        with pytest.raises(TextTooLongError):
            await fake_engine.synthesize(SynthesisRequest(text="a" * 50_001))
        assert fake_engine.rendered == []

    @pytest.mark.asyncio
    async def test_failed_render_removes_partial_file(self, tmp_path):
        out = tmp_path / "out"
        engine = FakeEngine(out, tmp_path, fail_with=RuntimeError("model crashed"))
        with pytest.raises(SynthesisFailedError, match="model crashed") as exc_info:
            await engine.synthesize(SynthesisRequest(text="Hello"))
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert list(out.iterdir()) == []

    @pytest.mark.asyncio
    async def test_cancelled_render_removes_partial_file(self, tmp_path):
        out = tmp_path / "out"
        engine = FakeEngine(out, tmp_path, fail_with=asyncio.CancelledError())
        with pytest.raises(asyncio.CancelledError):
            await engine.synthesize(SynthesisRequest(text="Hello"))
        assert list(out.iterdir()) == []

    @pytest.mark.asyncio
    async def test_empty_output_is_failure(self, tmp_path):
        out = tmp_path / "out"
        engine = FakeEngine(out, tmp_path, payload=b"")
        with pytest.raises(SynthesisFailedError, match="Empty"):
            await engine.synthesize(SynthesisRequest(text="Hello"))
        assert list(out.iterdir()) == []

    @pytest.mark.asyncio
    async def test_unavailable_engine(self, tmp_path):
        engine = FakeEngine(tmp_path, tmp_path, ready=False, available=False)
        with pytest.raises(EngineNotAvailableError):
            await engine.synthesize(SynthesisRequest(text="Hello"))
        assert engine.initialize_calls == 1

    @pytest.mark.asyncio
    async def test_lazy_initialization(self, tmp_path):
        engine = FakeEngine(tmp_path / "out", tmp_path, ready=False)
        result = await engine.synthesize(SynthesisRequest(text="Hello"))
        assert engine.ready
        assert result.voice == "Default"

    @pytest.mark.asyncio
    async def test_cleanup_resets_state(self, fake_engine):
        await fake_engine.cleanup()
        assert not fake_engine.ready
        voices = await fake_engine.list_voices()
        assert len(voices) == 2
        assert fake_engine.ready
