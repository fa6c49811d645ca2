"""Shared test fixtures and hand-written fakes."""

from collections.abc import Callable, Sequence
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any

import pytest

from song_guess.engine import GameEngine
from song_guess.models import Difficulty, GameSnapshot, QuestionResult, Track
from song_guess.playback import PlaybackDriver, PlaybackError


@dataclass
class ManualHandle:
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualTickScheduler:
    """Scheduler whose ticks only fire when the test advances time."""

    pending: list[ManualHandle] = field(default_factory=list)

    def schedule(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(callback)
        self.pending.append(handle)
        return handle

    def advance(self, seconds: int) -> None:
        for _ in range(seconds):
            due = [handle for handle in self.pending if not handle.cancelled]
            self.pending.clear()
            for handle in due:
                handle.callback()

    @property
    def active(self) -> int:
        return sum(1 for handle in self.pending if not handle.cancelled)


@dataclass
class ScriptedResolver:
    missing: set[str] = field(default_factory=set)
    failing: set[str] = field(default_factory=set)
    calls: list[tuple[str, str]] = field(default_factory=list)

    def resolve_preview(self, title: str, artist: str) -> str | None:
        self.calls.append((title, artist))
        if title in self.failing:
            raise RuntimeError("lookup exploded")
        if title in self.missing:
            return None
        return f"https://cdn.example/{title.replace(' ', '_')}.mp3"


class RecordingDriver(PlaybackDriver):
    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []
        self.fail_play = False
        self.finished_callbacks: list[Callable[[], None] | None] = []

    def set_finished_callback(self, callback: Callable[[], None] | None) -> None:
        super().set_finished_callback(callback)
        self.finished_callbacks.append(callback)

    def load(self, url: str) -> None:
        self.calls.append(f"load:{url}")

    def play(self) -> None:
        if self.fail_play:
            raise PlaybackError("audio device busy")
        self.calls.append("play")

    def stop(self) -> None:
        self.calls.append("stop")

    def finish(self) -> None:
        self._notify_finished()

    def die(self, message: str = "decoder crashed") -> None:
        self._notify_error(message)


@dataclass
class DeferredExecutor:
    """Executor that holds submitted work until the test releases it."""

    queued: list[tuple[Future, Callable[..., Any], tuple[Any, ...]]] = field(default_factory=list)

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        future: Future = Future()
        self.queued.append((future, fn, args))
        return future

    def run_all(self) -> None:
        while self.queued:
            future, fn, args = self.queued.pop(0)
            future.set_result(fn(*args))


@dataclass
class StaticTrackSource:
    tracks: list[Track]
    requests: list[tuple[int, Sequence[str] | None]] = field(default_factory=list)

    def fetch_candidate_tracks(self, count: int, artist_ids: Sequence[str] | None = None) -> list[Track]:
        self.requests.append((count, artist_ids))
        return self.tracks[:count]


def make_tracks(*titles: str) -> list[Track]:
    return [
        Track(
            id=f"t{index}",
            title=title,
            artist="Freddie Mercury",
            album_art=f"https://img.example/{index}.jpg",
            release_date="1975-10-31",
            album_name="A Night at the Opera",
        )
        for index, title in enumerate(titles)
    ]


def make_result(track_id: str, correct: bool, score: int = 0, hints_used: int = 0) -> QuestionResult:
    return QuestionResult(
        track_id=track_id,
        user_answer="guess" if correct else "",
        skipped=not correct,
        hints_used=hints_used,
        correct=correct,
        score=score,
    )


def play_round(engine: GameEngine, scheduler: ManualTickScheduler, guess: str) -> QuestionResult | None:
    """Play the ready track to the end of its countdown, then guess."""
    played, _ = engine.begin_playback()
    assert played
    scheduler.advance(engine.snapshot().session.max_answer_time)
    return engine.submit_guess(guess)


@pytest.fixture
def scheduler() -> ManualTickScheduler:
    return ManualTickScheduler()


@pytest.fixture
def resolver() -> ScriptedResolver:
    return ScriptedResolver()


@pytest.fixture
def driver() -> RecordingDriver:
    return RecordingDriver()


@pytest.fixture
def snapshots() -> list[GameSnapshot]:
    return []


@pytest.fixture
def engine(
    scheduler: ManualTickScheduler,
    resolver: ScriptedResolver,
    driver: RecordingDriver,
    snapshots: list[GameSnapshot],
) -> GameEngine:
    game = GameEngine(
        track_source=StaticTrackSource(make_tracks("Bohemian Rhapsody", "Love of My Life", "Seaside Rendezvous")),
        preview_resolver=resolver,
        driver=driver,
        scheduler=scheduler,
    )
    game.subscribe(snapshots.append)
    return game


@pytest.fixture
def hard() -> Difficulty:
    return Difficulty.HARD
