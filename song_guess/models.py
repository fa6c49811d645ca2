"""Game data model: tracks, difficulty, round results, sessions, snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .config import DIFFICULTY_ANSWER_SECONDS, DIFFICULTY_MULTIPLIERS


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def max_answer_time(self) -> int:
        return DIFFICULTY_ANSWER_SECONDS[self.value]

    @property
    def multiplier(self) -> int:
        return DIFFICULTY_MULTIPLIERS[self.value]


class RoundPhase(str, Enum):
    """Per-round state; ENDED is reported once no tracks remain."""

    LOADING = "loading"
    READY_TO_PLAY = "ready_to_play"
    PLAYING = "playing"
    AWAITING_GUESS = "awaiting_guess"
    RESOLVED = "resolved"
    ENDED = "ended"


@dataclass
class Track:
    id: str
    title: str
    artist: str
    album_art: str = ""
    preview_url: str = ""
    release_date: str | None = None
    album_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the library cache; preview URLs are per-round and not cached."""
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "album_art": self.album_art,
            "release_date": self.release_date,
            "album_name": self.album_name,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Track | None:
        track_id = payload.get("id")
        title = payload.get("title")
        artist = payload.get("artist")
        if not track_id or not title or not artist:
            return None

        return cls(
            id=str(track_id),
            title=str(title),
            artist=str(artist),
            album_art=str(payload.get("album_art") or ""),
            release_date=payload.get("release_date"),
            album_name=payload.get("album_name"),
        )


@dataclass(frozen=True)
class QuestionResult:
    track_id: str
    user_answer: str
    skipped: bool
    hints_used: int
    correct: bool
    score: int


@dataclass
class GameSession:
    tracks: tuple[Track, ...]
    difficulty: Difficulty
    snippet_time: int
    max_answer_time: int
    current_index: int = 0
    results: list[QuestionResult] = field(default_factory=list)
    score: int = 0

    @property
    def is_ended(self) -> bool:
        return self.current_index >= len(self.tracks)

    @property
    def current_track(self) -> Track | None:
        if self.is_ended:
            return None
        return self.tracks[self.current_index]

    def copy(self) -> GameSession:
        # Results list is the only growing collection; tracks are already a tuple.
        return replace(self, results=list(self.results))


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of the engine handed to observers after each transition."""

    phase: RoundPhase
    session: GameSession | None
    streak: int
    best_streak: int
    time_left: int = 0
    hints_used: int = 0
    hint_text: str = ""
    current_track: Track | None = None
    last_result: QuestionResult | None = None
    error: str | None = None
