"""Round scoring policy and end-of-session summaries."""

from typing import Any

from .config import BASE_SCORE, HINT_PENALTY, MIN_BASE_SCORE
from .models import Difficulty, GameSession


def score_answer(correct: bool, difficulty: Difficulty, hints_used: int) -> int:
    """Points for one round: hint-reduced base (floored) times difficulty multiplier."""
    if not correct:
        return 0

    adjusted_base = max(BASE_SCORE - hints_used * HINT_PENALTY, MIN_BASE_SCORE)
    return adjusted_base * difficulty.multiplier


def summarize_session(session: GameSession, best_streak: int) -> dict[str, Any]:
    """Aggregate one finished (or abandoned) session for the results screen."""
    answered = len(session.results)
    correct = sum(1 for result in session.results if result.correct)
    skipped = sum(1 for result in session.results if result.skipped)

    return {
        "difficulty": session.difficulty.value,
        "score": session.score,
        "total_tracks": len(session.tracks),
        "answered": answered,
        "correct": correct,
        "skipped": skipped,
        "hints_used": sum(result.hints_used for result in session.results),
        "accuracy_pct": round((correct / answered * 100), 2) if answered else 0.0,
        "best_streak": best_streak,
    }
