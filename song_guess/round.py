"""Round lifecycle: preview lookup, playback, countdown, hints, and guess scoring."""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future

from .config import MAX_HINTS
from .matching import is_correct_guess
from .models import GameSnapshot, QuestionResult, RoundPhase, Track
from .playback import PlaybackDriver, PlaybackError
from .preview import PreviewResolver
from .scoring import score_answer
from .session import SessionAggregator
from .timer import Countdown, TickScheduler

logger = logging.getLogger(__name__)

NO_MORE_HINTS = "No more hints available."
UNKNOWN_HINT_VALUE = "Unknown"


def build_hints(track: Track) -> list[str]:
    """Hints in the order they are handed out: artist initials, year, album."""
    initials = ".".join(part[:1].upper() for part in track.artist.split(" "))
    year = track.release_date[:4] if track.release_date else UNKNOWN_HINT_VALUE
    album = track.album_name or UNKNOWN_HINT_VALUE
    return [
        f"Artist Initials: {initials}",
        f"Year Released: {year}",
        f"Album Name: {album}",
    ]


class RoundController:
    """Drives one track at a time through loading -> ready -> playing -> guess -> resolved.

    All transitions run under one re-entrant lock; the countdown timer and the
    driver's end-of-clip and failure callbacks are the only other threads that
    reach in. Two tokens fence off stale work: `_round_token` for preview
    lookups and `_countdown_token` for timer and driver callbacks.
    """

    def __init__(
        self,
        aggregator: SessionAggregator,
        preview_resolver: PreviewResolver,
        driver: PlaybackDriver,
        scheduler: TickScheduler,
        executor: Executor | None = None,
        on_change: Callable[[GameSnapshot], None] | None = None,
    ) -> None:
        self._aggregator = aggregator
        self._resolver = preview_resolver
        self._driver = driver
        self._executor = executor
        self._on_change = on_change
        self._countdown = Countdown(scheduler)
        self._lock = threading.RLock()

        self._phase: RoundPhase | None = None
        self._round_token = 0
        self._countdown_token = 0
        self._time_left = 0
        self._hints_used = 0
        self._hint_text = ""
        self._last_result: QuestionResult | None = None
        self._error: str | None = None

    @property
    def phase(self) -> RoundPhase | None:
        return self._phase

    def snapshot(self) -> GameSnapshot:
        with self._lock:
            session = self._aggregator.session
            return GameSnapshot(
                phase=self._phase,
                session=session.copy() if session is not None else None,
                streak=self._aggregator.streak,
                best_streak=self._aggregator.best_streak,
                time_left=self._time_left,
                hints_used=self._hints_used,
                hint_text=self._hint_text,
                current_track=session.current_track if session is not None else None,
                last_result=self._last_result,
                error=self._error,
            )

    def start_session(self) -> None:
        """Begin the first round of the aggregator's freshly started session."""
        self.cancel()
        self._load_current()

    def cancel(self) -> None:
        """Drop the active round: stale lookups, ticks, and audio are all fenced off."""
        with self._lock:
            self._round_token += 1
            self._stop_listening_locked()
            self._phase = None
            self._reset_round_locked()

    def begin_playback(self) -> tuple[bool, str | None]:
        with self._lock:
            if self._phase != RoundPhase.READY_TO_PLAY:
                logger.warning("Ignoring play request in phase %s", self._phase)
                return False, "Round is not ready to play."

            track = self._current_track_locked()
            # Driver callbacks are fenced by this play's token.
            self._countdown_token += 1
            token = self._countdown_token
            self._driver.set_finished_callback(lambda: self._on_playback_finished(token))
            self._driver.set_error_callback(lambda message: self._on_playback_failed(token, message))
            try:
                self._driver.load(track.preview_url)
                self._driver.play()
            except PlaybackError as exc:
                logger.warning("Playback failed for %s: %s", track.id, exc)
                self._error = str(exc)
                self._notify_locked()
                return False, str(exc)

            self._phase = RoundPhase.PLAYING
            self._error = None
            self._time_left = self._max_answer_time_locked()
            self._countdown.start(
                self._time_left,
                on_tick=lambda remaining: self._on_tick(token, remaining),
                on_expire=lambda: self._on_expire(token),
            )
            self._notify_locked()
            return True, None

    def request_hint(self) -> str | None:
        with self._lock:
            if self._phase != RoundPhase.AWAITING_GUESS:
                logger.warning("Ignoring hint request in phase %s", self._phase)
                return None

            if self._hints_used >= MAX_HINTS:
                self._hint_text = NO_MORE_HINTS
            else:
                self._hint_text = build_hints(self._current_track_locked())[self._hints_used]
                self._hints_used += 1
            self._notify_locked()
            return self._hint_text

    def submit_guess(self, guess: str) -> QuestionResult | None:
        with self._lock:
            if self._phase != RoundPhase.AWAITING_GUESS:
                logger.warning("Ignoring guess in phase %s", self._phase)
                return None

            self._stop_listening_locked()
            track = self._current_track_locked()
            session = self._aggregator.session
            correct = is_correct_guess(track.title, guess)
            result = QuestionResult(
                track_id=track.id,
                user_answer=guess,
                skipped=guess.strip() == "",
                hints_used=self._hints_used,
                correct=correct,
                score=score_answer(correct, session.difficulty, self._hints_used),
            )
            if not self._aggregator.record_result(result):
                return None

            logger.info(
                "Round %s resolved: correct=%s score=%s hints=%s",
                session.current_index,
                result.correct,
                result.score,
                result.hints_used,
            )
            self._phase = RoundPhase.RESOLVED
            self._last_result = result
            self._notify_locked()
            return result

    def advance(self) -> bool:
        with self._lock:
            if self._phase != RoundPhase.RESOLVED:
                logger.warning("Ignoring advance in phase %s", self._phase)
                return False
            if not self._aggregator.advance():
                return False
        self._load_current()
        return True

    def _load_current(self) -> None:
        # Inline lookups loop here; executor lookups re-enter from the done callback.
        while True:
            with self._lock:
                session = self._aggregator.session
                if session is None:
                    return
                if session.is_ended:
                    self._phase = RoundPhase.ENDED
                    self._reset_round_locked()
                    self._notify_locked()
                    return

                self._round_token += 1
                token = self._round_token
                track = session.tracks[session.current_index]
                self._phase = RoundPhase.LOADING
                self._reset_round_locked()
                self._notify_locked()

            if self._executor is not None:
                future = self._executor.submit(self._resolve, track)
                future.add_done_callback(lambda done: self._on_resolved_async(token, track, done))
                return

            if not self._apply_preview(token, track, self._resolve(track)):
                return

    def _resolve(self, track: Track) -> str | None:
        try:
            return self._resolver.resolve_preview(track.title, track.artist)
        except Exception as exc:
            # Any resolver failure only costs this track.
            logger.warning("Preview lookup failed for %s - %s: %s", track.title, track.artist, exc)
            return None

    def _on_resolved_async(self, token: int, track: Track, future: Future) -> None:
        url = future.result() if not future.cancelled() else None
        if self._apply_preview(token, track, url):
            self._load_current()

    def _apply_preview(self, token: int, track: Track, url: str | None) -> bool:
        """Apply a lookup result; returns True when the track was skipped and the next should load."""
        with self._lock:
            if token != self._round_token:
                logger.debug("Discarding stale preview for %s", track.id)
                return False

            if not url:
                logger.warning("No preview for %s - %s; skipping", track.title, track.artist)
                return self._aggregator.advance()

            track.preview_url = url
            self._phase = RoundPhase.READY_TO_PLAY
            self._time_left = self._max_answer_time_locked()
            self._notify_locked()
            return False

    def _on_tick(self, token: int, remaining: int) -> None:
        with self._lock:
            if token != self._countdown_token or self._phase != RoundPhase.PLAYING:
                return
            self._time_left = remaining
            self._notify_locked()

    def _on_expire(self, token: int) -> None:
        with self._lock:
            if token != self._countdown_token or self._phase != RoundPhase.PLAYING:
                return
            logger.debug("Countdown expired")
            self._open_guessing_locked()

    def _on_playback_finished(self, token: int) -> None:
        with self._lock:
            if token != self._countdown_token or self._phase != RoundPhase.PLAYING:
                return
            logger.debug("Clip ended before countdown")
            self._open_guessing_locked()

    def _on_playback_failed(self, token: int, message: str) -> None:
        with self._lock:
            if token != self._countdown_token or self._phase != RoundPhase.PLAYING:
                return
            logger.warning("Playback died mid-clip: %s", message)
            self._stop_listening_locked()
            self._phase = RoundPhase.READY_TO_PLAY
            self._time_left = self._max_answer_time_locked()
            self._error = message
            self._notify_locked()

    def _open_guessing_locked(self) -> None:
        self._stop_listening_locked()
        self._phase = RoundPhase.AWAITING_GUESS
        self._time_left = 0
        self._notify_locked()

    def _stop_listening_locked(self) -> None:
        self._countdown_token += 1
        self._countdown.cancel()
        self._driver.stop()

    def _reset_round_locked(self) -> None:
        self._time_left = 0
        self._hints_used = 0
        self._hint_text = ""
        self._error = None
        self._last_result = None

    def _current_track_locked(self) -> Track:
        return self._aggregator.session.tracks[self._aggregator.session.current_index]

    def _max_answer_time_locked(self) -> int:
        return self._aggregator.session.max_answer_time

    def _notify_locked(self) -> None:
        if self._on_change is not None:
            self._on_change(self.snapshot())
