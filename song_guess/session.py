"""Session aggregation: ordered results, running score, and streaks."""

import logging
from collections.abc import Sequence

from .models import Difficulty, GameSession, QuestionResult, Track

logger = logging.getLogger(__name__)


class SessionStateError(RuntimeError):
    """Raised when session bookkeeping no longer satisfies its invariants."""


class SessionAggregator:
    """Owns the active session plus streak state.

    Misuse (recording twice for one track, advancing past the end) is logged
    and ignored so a confused caller can never corrupt the session.
    """

    def __init__(self) -> None:
        self._session: GameSession | None = None
        self._streak = 0
        self._best_streak = 0
        # True between recording a result for current_index and advancing past it.
        self._result_pending_advance = False

    @property
    def session(self) -> GameSession | None:
        return self._session

    @property
    def streak(self) -> int:
        return self._streak

    @property
    def best_streak(self) -> int:
        return self._best_streak

    @property
    def has_result_for_current(self) -> bool:
        return self._result_pending_advance

    def start(self, tracks: Sequence[Track], difficulty: Difficulty) -> GameSession:
        """Replace any running session with a fresh one over `tracks`."""
        if self._session is not None:
            logger.info("Replacing running session at index %s", self._session.current_index)

        self._session = GameSession(
            tracks=tuple(tracks),
            difficulty=difficulty,
            snippet_time=difficulty.max_answer_time,
            max_answer_time=difficulty.max_answer_time,
        )
        self._streak = 0
        self._best_streak = 0
        self._result_pending_advance = False
        logger.info("Started %s session with %s tracks", difficulty.value, len(self._session.tracks))
        return self._session

    def clear(self) -> None:
        self._session = None
        self._streak = 0
        self._best_streak = 0
        self._result_pending_advance = False

    def record_result(self, result: QuestionResult) -> bool:
        session = self._session
        if session is None or session.is_ended:
            logger.warning("Ignoring result for %s: no active round", result.track_id)
            return False
        if self._result_pending_advance:
            logger.warning("Ignoring duplicate result for index %s", session.current_index)
            return False
        if result.track_id != session.tracks[session.current_index].id:
            logger.warning(
                "Ignoring result for %s: current track is %s",
                result.track_id,
                session.tracks[session.current_index].id,
            )
            return False

        session.results.append(result)
        session.score += result.score
        if result.correct:
            self._streak += 1
            self._best_streak = max(self._best_streak, self._streak)
        else:
            self._streak = 0
        self._result_pending_advance = True

        self.check_invariants()
        return True

    def advance(self) -> bool:
        session = self._session
        if session is None or session.is_ended:
            logger.warning("Ignoring advance: session already ended")
            return False

        session.current_index += 1
        self._result_pending_advance = False
        if session.is_ended:
            logger.info("Session ended with score %s after %s results", session.score, len(session.results))

        self.check_invariants()
        return True

    def is_ended(self) -> bool:
        return self._session is None or self._session.is_ended

    def check_invariants(self) -> None:
        session = self._session
        if session is None:
            return

        recorded_slots = session.current_index + (1 if self._result_pending_advance else 0)
        if not 0 <= session.current_index <= len(session.tracks):
            raise SessionStateError(f"current_index {session.current_index} outside 0..{len(session.tracks)}")
        if len(session.results) > recorded_slots:
            raise SessionStateError(f"{len(session.results)} results recorded for {recorded_slots} rounds")
        if session.score != sum(result.score for result in session.results):
            raise SessionStateError("Running score does not match recorded results")
