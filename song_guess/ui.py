"""Terminal rendering of engine snapshots and line-based player prompts."""

import shutil
import sys
import textwrap
import threading
from typing import Any

from .config import MAX_TERMINAL_WIDTH
from .models import GameSnapshot, RoundPhase, Track

HINT_COMMAND = "?"
QUIT_COMMANDS = {"q", "quit", "exit"}


def get_terminal_width() -> int:
    return min(MAX_TERMINAL_WIDTH, shutil.get_terminal_size(fallback=(MAX_TERMINAL_WIDTH, 24)).columns)


def clear_terminal() -> None:
    if not sys.stdout.isatty():
        return

    sys.stdout.write("\033[2J\033[3J\033[H")
    sys.stdout.flush()


def enter_alternate_screen() -> bool:
    if not sys.stdout.isatty():
        return False

    sys.stdout.write("\033[?1049h\033[H")
    sys.stdout.flush()
    return True


def leave_alternate_screen() -> None:
    if not sys.stdout.isatty():
        return

    sys.stdout.write("\033[?1049l")
    sys.stdout.flush()


def wrap_line(text: str, width: int, indent: str = "") -> list[str]:
    return textwrap.wrap(
        text,
        width=max(30, width - len(indent)),
        initial_indent=indent,
        subsequent_indent=indent,
        break_long_words=False,
        break_on_hyphens=False,
    ) or [indent + text]


def build_header_lines(snapshot: GameSnapshot, width: int) -> list[str]:
    divider = "=" * width
    session = snapshot.session
    if session is None:
        return [divider, "No game in progress", divider]

    round_number = min(session.current_index + 1, len(session.tracks))
    return [
        divider,
        f"Round {round_number}/{len(session.tracks)}   Score: {session.score}   "
        f"Streak: {snapshot.streak}   Difficulty: {session.difficulty.value}",
        divider,
    ]


def build_track_lines(track: Track, width: int) -> list[str]:
    lines = wrap_line(track.title, width)
    lines.extend(wrap_line(track.artist, width, indent="    "))
    return lines


def build_round_lines(snapshot: GameSnapshot, width: int | None = None) -> list[str]:
    """Lines for the current phase; the answer is only shown once the round resolves."""
    width = width or get_terminal_width()
    lines = build_header_lines(snapshot, width)

    if snapshot.phase == RoundPhase.LOADING:
        lines.append("Loading next round...")
    elif snapshot.phase == RoundPhase.READY_TO_PLAY:
        lines.append("Guess the song!")
        lines.append(f"You will have {snapshot.time_left:02d}s of audio.")
        if snapshot.error:
            lines.append(f"Playback error: {snapshot.error}")
    elif snapshot.phase == RoundPhase.PLAYING:
        lines.append("Listen...")
        lines.append(f"Time left: {snapshot.time_left:02d}s")
    elif snapshot.phase == RoundPhase.AWAITING_GUESS:
        lines.append("Time's up! Guess now.")
        if snapshot.hint_text:
            lines.append(f"Hint: {snapshot.hint_text}")
    elif snapshot.phase == RoundPhase.RESOLVED and snapshot.last_result is not None:
        result = snapshot.last_result
        lines.append("Correct!" if result.correct else "Wrong!")
        if snapshot.current_track is not None:
            lines.extend(build_track_lines(snapshot.current_track, width))
        if result.correct:
            lines.append(f"You earned {result.score} points!")
        else:
            lines.append("Better luck next time!")
    elif snapshot.phase == RoundPhase.ENDED:
        lines.append("Game Over")

    lines.append("=" * width)
    return lines


def build_results_lines(snapshot: GameSnapshot, summary: dict[str, Any], width: int | None = None) -> list[str]:
    width = width or get_terminal_width()
    divider = "=" * width
    lines = [divider, "Game Over", "The game has ended. Thanks for playing!", divider, "Your Results:"]

    session = snapshot.session
    tracks_by_id = {track.id: track for track in session.tracks} if session is not None else {}
    results = session.results if session is not None else []
    for result in results:
        track = tracks_by_id.get(result.track_id)
        if track is not None:
            lines.extend(wrap_line(f"{track.title} by {track.artist}", width))
        lines.append(f"    Your Answer: {result.user_answer or 'N/A'}")
        if result.hints_used:
            lines.append(f"    Hints Used: {result.hints_used}")
        if result.correct:
            lines.append(f"    Correct! +{result.score} points")
        elif result.skipped:
            lines.append("    Skipped")
        else:
            lines.append("    Wrong!")

    lines.extend(
        [
            divider,
            f"Final Score: {summary['score']}",
            f"Total Correct: {summary['correct']}/{summary['total_tracks']}",
            f"Best Streak: {summary['best_streak']}",
        ]
    )
    if summary["answered"] < summary["total_tracks"]:
        skipped_tracks = summary["total_tracks"] - summary["answered"]
        lines.append(f"{skipped_tracks} track(s) had no preview and were skipped.")
    return lines


class TerminalView:
    """Observer that redraws the screen on every snapshot.

    Also exposes an event the prompt loop waits on while the snippet plays;
    it is set whenever no snippet is playing, whether it ended or failed.
    """

    def __init__(self) -> None:
        self.snippet_over = threading.Event()
        self._lock = threading.Lock()
        self.latest: GameSnapshot | None = None

    def __call__(self, snapshot: GameSnapshot) -> None:
        with self._lock:
            self.latest = snapshot
            if snapshot.phase == RoundPhase.PLAYING:
                self.snippet_over.clear()
            else:
                self.snippet_over.set()

            # The results screen is drawn by the prompt loop once the game ends.
            if snapshot.phase == RoundPhase.ENDED or snapshot.session is None:
                return
            clear_terminal()
            print("\n".join(build_round_lines(snapshot)), flush=True)


def prompt_line(message: str) -> str:
    try:
        return input(message)
    except EOFError:
        return "q"


def prompt_play_again() -> bool:
    return prompt_line("Play again? [y/N] -> ").strip().lower() in {"y", "yes"}
