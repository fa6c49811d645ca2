"""Tests for the mpv-backed playback driver."""

import shutil
import threading

import pytest

from song_guess.engine import GameEngine
from song_guess.models import Difficulty, GameSnapshot, RoundPhase
from song_guess.playback import MpvPlaybackDriver, PlaybackError
from tests.conftest import ManualTickScheduler, ScriptedResolver, StaticTrackSource, make_tracks


def test_load_requires_url() -> None:
    with pytest.raises(PlaybackError):
        MpvPlaybackDriver().load("")


def test_play_without_load_fails() -> None:
    with pytest.raises(PlaybackError):
        MpvPlaybackDriver().play()


def test_missing_player_binary_is_a_playback_error() -> None:
    driver = MpvPlaybackDriver(command="definitely-not-an-audio-player")
    driver.load("https://cdn.example/clip.mp3")

    assert not driver.is_available()
    with pytest.raises(PlaybackError):
        driver.play()


def test_stop_is_idempotent() -> None:
    driver = MpvPlaybackDriver()
    driver.stop()
    driver.stop()


@pytest.mark.skipif(shutil.which("true") is None, reason="needs the `true` binary")
def test_natural_end_is_reported() -> None:
    finished = threading.Event()
    failures: list[str] = []
    driver = MpvPlaybackDriver(command="true")
    driver.set_finished_callback(finished.set)
    driver.set_error_callback(failures.append)
    driver.load("https://cdn.example/clip.mp3")

    driver.play()

    assert finished.wait(timeout=5)
    assert failures == []


@pytest.mark.skipif(shutil.which("false") is None, reason="needs the `false` binary")
def test_nonzero_exit_is_reported_as_error() -> None:
    failed = threading.Event()
    finished: list[bool] = []
    messages: list[str] = []

    def on_error(message: str) -> None:
        messages.append(message)
        failed.set()

    driver = MpvPlaybackDriver(command="false")
    driver.set_finished_callback(lambda: finished.append(True))
    driver.set_error_callback(on_error)
    driver.load("https://cdn.example/expired.mp3")

    driver.play()

    assert failed.wait(timeout=5)
    assert "exit status 1" in messages[0]
    assert finished == []


@pytest.mark.skipif(shutil.which("false") is None, reason="needs the `false` binary")
def test_player_failure_leaves_round_retryable() -> None:
    errored = threading.Event()

    def watch(snapshot: GameSnapshot) -> None:
        if snapshot.error:
            errored.set()

    engine = GameEngine(
        track_source=StaticTrackSource(make_tracks("Bohemian Rhapsody")),
        preview_resolver=ScriptedResolver(),
        driver=MpvPlaybackDriver(command="false"),
        scheduler=ManualTickScheduler(),
    )
    engine.subscribe(watch)
    engine.new_game(1, Difficulty.HARD)

    assert engine.begin_playback() == (True, None)
    assert errored.wait(timeout=5)

    snapshot = engine.snapshot()
    assert snapshot.phase == RoundPhase.READY_TO_PLAY
    assert "exit status 1" in snapshot.error
    assert snapshot.session.results == []


class SharedPidProcess:
    """Stand-in for a player process; every instance gets the same pid, as after pid reuse."""

    pid = 4242

    def __init__(self, *args: object, **kwargs: object) -> None:
        self.returncode: int | None = None
        self._exited = threading.Event()

    def poll(self) -> int | None:
        return self.returncode if self._exited.is_set() else None

    def terminate(self) -> None:
        self.returncode = -15

    def kill(self) -> None:
        self.returncode = -9

    def wait(self, timeout: float | None = None) -> int | None:
        if timeout is None:
            self._exited.wait()
        return self.returncode

    def exit(self, code: int = 0) -> None:
        if self.returncode is None:
            self.returncode = code
        self._exited.set()


def test_stopped_process_does_not_mask_next_one_with_same_pid(monkeypatch: pytest.MonkeyPatch) -> None:
    processes: list[SharedPidProcess] = []

    def spawn(*args: object, **kwargs: object) -> SharedPidProcess:
        process = SharedPidProcess()
        processes.append(process)
        return process

    monkeypatch.setattr("song_guess.playback.subprocess.Popen", spawn)
    finished = threading.Event()
    driver = MpvPlaybackDriver()
    driver.set_finished_callback(finished.set)

    driver.load("https://cdn.example/first.mp3")
    driver.play()
    # Loading the next clip stops the first; its watcher is still waiting.
    driver.load("https://cdn.example/second.mp3")
    driver.play()

    first, second = processes
    second.exit(0)
    assert finished.wait(timeout=5)

    first.exit()
