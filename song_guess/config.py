"""Shared configuration constants used across the application."""

from pathlib import Path

# Spotify OAuth scopes needed for reading the saved-track library.
SCOPE = "user-library-read"

# Local file paths for auth token caching, library cache, and logs.
TOKEN_CACHE_PATH = Path(".spotifycache")
LIBRARY_CACHE_PATH = Path("library_data.json")
LOG_PATH = Path("song_guess.log")

# Spotify paging limits.
SAVED_TRACKS_PAGE_SIZE = 50  # Spotify API max page size for saved tracks.
ARTIST_ALBUMS_PAGE_SIZE = 50
ARTIST_TOP_TRACKS_KEPT = 5
MAX_TRACKS_PER_ARTIST = 50
ARTIST_SEARCH_LIMIT = 20
DEFAULT_MARKET = "US"

# Deezer preview lookup.
DEEZER_SEARCH_URL = "https://api.deezer.com/search"
DEFAULT_HTTP_TIMEOUT_SECONDS = 10

# Difficulty table: seconds to answer and score multiplier.
DIFFICULTY_ANSWER_SECONDS = {"easy": 30, "medium": 20, "hard": 10}
DIFFICULTY_MULTIPLIERS = {"easy": 1, "medium": 2, "hard": 3}
DEFAULT_DIFFICULTY = "hard"

# Scoring policy.
BASE_SCORE = 100
HINT_PENALTY = 10
MIN_BASE_SCORE = 10
MAX_HINTS = 3
SIMILARITY_THRESHOLD = 90

# Session sizes offered to the player.
TRACK_AMOUNTS = (5, 10, 20, 30, 50)
DEFAULT_TRACK_AMOUNT = 5

# Terminal front end.
MAX_TERMINAL_WIDTH = 110
DEFAULT_PLAYER_COMMAND = "mpv"
