"""Candidate track sources: the user's saved library or selected artists' catalogs."""

import logging
import random
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any, Protocol

import spotipy
from spotipy.exceptions import SpotifyException

from .config import (
    ARTIST_ALBUMS_PAGE_SIZE,
    ARTIST_SEARCH_LIMIT,
    ARTIST_TOP_TRACKS_KEPT,
    DEFAULT_MARKET,
    LIBRARY_CACHE_PATH,
    MAX_TRACKS_PER_ARTIST,
)
from .library import load_or_sync_library, track_from_spotify
from .models import Track

logger = logging.getLogger(__name__)


class TrackSource(Protocol):
    def fetch_candidate_tracks(self, count: int, artist_ids: Sequence[str] | None = None) -> list[Track]:
        """Return up to `count` distinct tracks, shuffled."""
        ...


class SpotifyTrackSource:
    """Track source backed by an authenticated Spotipy client."""

    def __init__(
        self,
        sp: spotipy.Spotify,
        refresh_library: bool = False,
        cache_path: Path = LIBRARY_CACHE_PATH,
        rng: random.Random | None = None,
    ) -> None:
        self._sp = sp
        self._refresh_library = refresh_library
        self._cache_path = cache_path
        self._rng = rng or random.Random()
        self._library: list[Track] | None = None

    def fetch_candidate_tracks(self, count: int, artist_ids: Sequence[str] | None = None) -> list[Track]:
        if artist_ids:
            pool = self._artist_pool(artist_ids)
        else:
            pool = self._saved_library()

        picked = self._rng.sample(pool, min(max(0, count), len(pool)))
        # Fresh copies: each session writes its own preview URLs.
        selected = [replace(track, preview_url="") for track in picked]
        logger.info("Selected %s of %s candidate tracks", len(selected), len(pool))
        return selected

    def search_artists(self, query: str, limit: int = ARTIST_SEARCH_LIMIT) -> list[dict[str, Any]]:
        if not query.strip():
            return []

        results = self._sp.search(q=query, type="artist", limit=limit)
        artists = results.get("artists", {}) if isinstance(results, dict) else {}
        items = artists.get("items", []) if isinstance(artists, dict) else []
        return [item for item in items if isinstance(item, dict) and item.get("id")]

    def fetch_artist_tracks(self, artist_id: str, max_tracks: int = MAX_TRACKS_PER_ARTIST) -> list[Track]:
        """Top tracks first, then tracks from the artist's albums in random order."""
        top_payload = self._sp.artist_top_tracks(artist_id, country=DEFAULT_MARKET)
        raw_top = top_payload.get("tracks", []) if isinstance(top_payload, dict) else []

        # Every top track id counts as seen, even the ones beyond the kept slice.
        seen_ids = {raw.get("id") for raw in raw_top if isinstance(raw, dict)}
        tracks = [track for track in map(track_from_spotify, raw_top[:ARTIST_TOP_TRACKS_KEPT]) if track]
        if len(tracks) >= max_tracks:
            return tracks[:max_tracks]

        albums_payload = self._sp.artist_albums(
            artist_id,
            include_groups="album,single",
            country=DEFAULT_MARKET,
            limit=ARTIST_ALBUMS_PAGE_SIZE,
        )
        albums = [album for album in albums_payload.get("items", []) if isinstance(album, dict) and album.get("id")]
        self._rng.shuffle(albums)

        for album in albums:
            if len(tracks) >= max_tracks:
                break

            try:
                album_tracks = self._sp.album_tracks(album["id"], limit=50)
            except SpotifyException as exc:
                logger.warning("Skipping album %s: %s", album["id"], exc)
                continue

            for raw_track in album_tracks.get("items", []):
                if len(tracks) >= max_tracks:
                    break
                track = track_from_spotify(raw_track, album=album)
                if track is None or track.id in seen_ids:
                    continue
                seen_ids.add(track.id)
                tracks.append(track)

        return tracks

    def _artist_pool(self, artist_ids: Sequence[str]) -> list[Track]:
        pool: list[Track] = []
        seen_ids: set[str] = set()
        for artist_id in artist_ids:
            try:
                artist_tracks = self.fetch_artist_tracks(artist_id)
            except SpotifyException as exc:
                logger.warning("Failed to fetch tracks for artist %s: %s", artist_id, exc)
                continue

            for track in artist_tracks:
                if track.id not in seen_ids:
                    seen_ids.add(track.id)
                    pool.append(track)
        return pool

    def _saved_library(self) -> list[Track]:
        if self._library is None:
            self._library = load_or_sync_library(self._sp, self._refresh_library, self._cache_path)
            # Later games in the same run reuse the synced library.
            self._refresh_library = False
        return self._library
