"""Game engine facade: wires session, round controller, and observers together."""

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Executor
from typing import Any

from .models import Difficulty, GameSnapshot, QuestionResult, Track
from .playback import PlaybackDriver
from .preview import PreviewResolver
from .round import RoundController
from .scoring import summarize_session
from .session import SessionAggregator
from .sources import TrackSource
from .timer import ThreadingTickScheduler, TickScheduler

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[GameSnapshot], None]


class GameEngine:
    """Single entry point for a front end.

    The front end sends actions (`begin_playback`, `request_hint`, ...) and
    renders the `GameSnapshot` pushed to every subscriber after each
    transition. Listeners run on whichever thread caused the transition
    (the countdown ticks on a timer thread) and must not block.
    """

    def __init__(
        self,
        track_source: TrackSource,
        preview_resolver: PreviewResolver,
        driver: PlaybackDriver,
        scheduler: TickScheduler | None = None,
        executor: Executor | None = None,
    ) -> None:
        self._track_source = track_source
        self._aggregator = SessionAggregator()
        self._listeners: list[SnapshotListener] = []
        self._listeners_lock = threading.Lock()
        self._controller = RoundController(
            aggregator=self._aggregator,
            preview_resolver=preview_resolver,
            driver=driver,
            scheduler=scheduler or ThreadingTickScheduler(),
            executor=executor,
            on_change=self._publish,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a snapshot listener; returns a function that unsubscribes it."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def new_game(
        self,
        count: int,
        difficulty: Difficulty,
        artist_ids: Sequence[str] | None = None,
    ) -> GameSnapshot:
        """Fetch candidates from the track source and start a session over them."""
        tracks = self._track_source.fetch_candidate_tracks(count, artist_ids)
        if not tracks:
            raise RuntimeError("No tracks available to build a game from.")
        return self.start(tracks, difficulty)

    def start(self, tracks: Sequence[Track], difficulty: Difficulty) -> GameSnapshot:
        """Replace any running game; nothing from the previous one survives."""
        self._controller.cancel()
        self._aggregator.start(tracks, difficulty)
        self._controller.start_session()
        return self.snapshot()

    def abandon(self) -> None:
        self._controller.cancel()
        self._aggregator.clear()
        self._publish(self.snapshot())

    def begin_playback(self) -> tuple[bool, str | None]:
        return self._controller.begin_playback()

    def request_hint(self) -> str | None:
        return self._controller.request_hint()

    def submit_guess(self, guess: str) -> QuestionResult | None:
        return self._controller.submit_guess(guess)

    def next_round(self) -> bool:
        return self._controller.advance()

    def is_ended(self) -> bool:
        return self._aggregator.is_ended()

    def snapshot(self) -> GameSnapshot:
        return self._controller.snapshot()

    def summary(self) -> dict[str, Any] | None:
        session = self._aggregator.session
        if session is None:
            return None
        return summarize_session(session, self._aggregator.best_streak)

    def _publish(self, snapshot: GameSnapshot) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                # A broken view must not take the game state machine down with it.
                logger.exception("Snapshot listener failed")
