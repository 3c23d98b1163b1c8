"""Tests for the playback controller (player processes are mocked)."""

import signal
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from localtts.audio.player import AudioPlayer, PlaybackState, default_player_command
from localtts.core.exceptions import (
    AudioFileNotFoundError,
    InvalidParametersError,
    PlaybackError,
)


@pytest.fixture
def mock_popen():
    with patch("localtts.audio.player.subprocess.Popen") as popen:
        popen.side_effect = lambda *args, **kwargs: _process()
        yield popen


def _process():
    process = MagicMock()
    process.pid = 4242
    process.poll.return_value = None
    process.wait.return_value = 0
    return process


class TestPlay:
    def test_play_file(self, player, mock_popen, audio_file):
        response = player.play(str(audio_file))
        assert response == {
            "message": "Started playing audio file",
            "status": "playing",
            "file": str(audio_file),
        }
        args = mock_popen.call_args.args[0]
        assert args == ["fake-player", str(audio_file)]
        assert player.state.status == "playing"
        assert player.state.file == str(audio_file)

    def test_play_most_recent(self, player, mock_popen, audio_file):
        player.remember(str(audio_file))
        response = player.play()
        assert response["file"] == str(audio_file)

    def test_no_file_and_nothing_recent(self, player, mock_popen):
        with pytest.raises(AudioFileNotFoundError, match="no recent file"):
            player.play()
        mock_popen.assert_not_called()

    def test_missing_file(self, player, mock_popen, tmp_path):
        with pytest.raises(AudioFileNotFoundError):
            player.play(str(tmp_path / "gone.wav"))
        mock_popen.assert_not_called()

    def test_play_replaces_previous(self, player, mock_popen, audio_file):
        player.play(str(audio_file))
        first = player._process
        player.play(str(audio_file))
        first.terminate.assert_called_once()
        assert player._process is not first
        assert mock_popen.call_count == 2

    def test_player_fails_to_start(self, player, audio_file):
        with patch("localtts.audio.player.subprocess.Popen", side_effect=FileNotFoundError("fake-player")):
            with pytest.raises(PlaybackError):
                player.play(str(audio_file))
        assert player.state.status == "stopped"

    def test_no_player_available(self, audio_file):
        player = AudioPlayer()
        with patch("localtts.audio.player.default_player_command", return_value=None):
            with pytest.raises(PlaybackError):
                player.play(str(audio_file))


class TestPauseResume:
    def test_pause_and_resume(self, player, mock_popen, audio_file):
        player.play(str(audio_file))
        process = player._process

        assert player.pause()["status"] == "paused"
        process.send_signal.assert_called_with(signal.SIGSTOP)
        assert player.state.to_dict()["isPaused"] is True

        assert player.pause()["status"] == "paused"

        assert player.resume()["status"] == "playing"
        process.send_signal.assert_called_with(signal.SIGCONT)
        assert player.state.status == "playing"

    def test_pause_without_playback(self, player):
        assert player.pause() == {"message": "No active playback to pause", "status": "stopped"}

    def test_resume_without_pause(self, player, mock_popen, audio_file):
        assert player.resume()["status"] == "stopped"
        player.play(str(audio_file))
        response = player.resume()
        assert response["message"] == "No paused playback to resume"
        assert response["status"] == "playing"

    def test_pause_after_player_vanished(self, player, mock_popen, audio_file):
        player.play(str(audio_file))
        player._process.send_signal.side_effect = ProcessLookupError
        assert player.pause()["status"] == "stopped"
        assert player.state.status == "stopped"


class TestStop:
    def test_stop(self, player, mock_popen, audio_file):
        player.play(str(audio_file))
        process = player._process
        assert player.stop() == {"message": "Audio playback stopped", "status": "stopped"}
        process.terminate.assert_called_once()
        assert player.state == PlaybackState(status="stopped", most_recent_file=str(audio_file))

    def test_stop_without_playback(self, player):
        assert player.stop() == {"message": "No active playback to stop", "status": "stopped"}

    def test_stop_paused_player_continues_it(self, player, mock_popen, audio_file):
        player.play(str(audio_file))
        process = player._process
        player.pause()
        player.stop()
        process.send_signal.assert_called_with(signal.SIGCONT)

    def test_stop_kills_stubborn_player(self, player, mock_popen, audio_file):
        player.play(str(audio_file))
        process = player._process
        process.wait.side_effect = [subprocess.TimeoutExpired("fake-player", 2), 0]
        player.stop()
        process.kill.assert_called_once()
        assert player.state.status == "stopped"

    def test_finished_player_is_reaped(self, player, mock_popen, audio_file):
        player.play(str(audio_file))
        player._process.poll.return_value = 0
        assert player.state.status == "stopped"
        assert player.state.file is None


class TestHandle:
    def test_dispatch(self, player, mock_popen, audio_file):
        assert player.handle("play", str(audio_file))["status"] == "playing"
        assert player.handle("pause")["status"] == "paused"
        assert player.handle("resume")["status"] == "playing"
        assert player.handle("stop")["status"] == "stopped"

    def test_unknown_action(self, player):
        with pytest.raises(InvalidParametersError):
            player.handle("rewind")


class TestDefaultPlayer:
    def test_macos_uses_afplay(self):
        with patch("localtts.audio.player.sys.platform", "darwin"):
            assert default_player_command() == ["afplay"]

    def test_linux_searches_path(self):
        with patch("localtts.audio.player.sys.platform", "linux"), \
                patch("localtts.audio.player.shutil.which",
                      side_effect=lambda name: "/usr/bin/paplay" if name == "paplay" else None):
            assert default_player_command() == ["paplay"]
