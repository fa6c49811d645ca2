"""Spotify credentials and the OAuth client the track sources read through."""

from dataclasses import dataclass
from pathlib import Path

import spotipy
from spotipy.oauth2 import SpotifyOAuth

from .config import DEFAULT_HTTP_TIMEOUT_SECONDS, SCOPE, TOKEN_CACHE_PATH
from .env import get_env_int, get_required_env

SPOTIFY_RETRIES = 3


@dataclass(frozen=True)
class SpotifyCredentials:
    client_id: str
    client_secret: str
    redirect_uri: str
    token_cache_path: Path = TOKEN_CACHE_PATH
    http_timeout: int = DEFAULT_HTTP_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "SpotifyCredentials":
        """Read the app registration from SPOTIPY_* variables; raises RuntimeError if one is missing."""
        return cls(
            client_id=get_required_env("SPOTIPY_CLIENT_ID"),
            client_secret=get_required_env("SPOTIPY_CLIENT_SECRET"),
            redirect_uri=get_required_env("SPOTIPY_REDIRECT_URI"),
            http_timeout=get_env_int("SONG_GUESS_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT_SECONDS),
        )


def create_spotify_client(credentials: SpotifyCredentials, open_browser: bool = True) -> spotipy.Spotify:
    """Build a client that can read the user's saved tracks.

    The auth manager owns the access token: it runs the browser consent flow
    on first use and refreshes the cached token after that.
    """
    auth_manager = SpotifyOAuth(
        client_id=credentials.client_id,
        client_secret=credentials.client_secret,
        redirect_uri=credentials.redirect_uri,
        scope=SCOPE,
        cache_path=str(credentials.token_cache_path),
        open_browser=open_browser,
    )
    return spotipy.Spotify(
        auth_manager=auth_manager,
        requests_timeout=credentials.http_timeout,
        retries=SPOTIFY_RETRIES,
        status_retries=SPOTIFY_RETRIES,
    )


def close_sessions(sp: spotipy.Spotify) -> None:
    # Both the client and its auth manager keep a private requests session.
    for owner in (sp, sp.auth_manager):
        session = getattr(owner, "_session", None)
        if session is not None:
            session.close()
