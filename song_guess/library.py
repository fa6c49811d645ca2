"""Saved-track library sync and local JSON cache."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import spotipy

from .config import LIBRARY_CACHE_PATH, SAVED_TRACKS_PAGE_SIZE
from .models import Track

logger = logging.getLogger(__name__)


def extract_image_url(raw_track: dict[str, Any], album: dict[str, Any] | None = None) -> str:
    """Return the largest album image URL (Spotify lists largest first)."""
    album = album if album is not None else raw_track.get("album")
    if not isinstance(album, dict):
        return ""

    images = album.get("images")
    if not isinstance(images, list) or not images:
        return ""

    first = images[0]
    if isinstance(first, dict) and isinstance(first.get("url"), str):
        return first["url"]
    return ""


def track_from_spotify(raw_track: dict[str, Any] | None, album: dict[str, Any] | None = None) -> Track | None:
    """Convert a Spotify track payload; album tracks lack album info, so it can be passed in."""
    if not isinstance(raw_track, dict):
        return None

    track_id = raw_track.get("id")
    title = raw_track.get("name")
    if not track_id or not isinstance(title, str) or not title.strip():
        return None

    raw_artists = raw_track.get("artists", [])
    artists: list[str] = []
    if isinstance(raw_artists, list):
        artists = [artist.get("name", "").strip() for artist in raw_artists if isinstance(artist, dict)]
        artists = [artist for artist in artists if artist]
    if not artists:
        return None

    album_info = raw_track.get("album") if isinstance(raw_track.get("album"), dict) else album
    if not isinstance(album_info, dict):
        album_info = {}

    return Track(
        id=str(track_id),
        title=title,
        artist=", ".join(artists),
        album_art=extract_image_url(raw_track, album_info),
        release_date=album_info.get("release_date") or None,
        album_name=album_info.get("name") or None,
    )


def fetch_library_from_spotify(sp: spotipy.Spotify) -> list[Track]:
    tracks: list[Track] = []
    offset = 0

    while True:
        page = sp.current_user_saved_tracks(limit=SAVED_TRACKS_PAGE_SIZE, offset=offset)
        items = page.get("items", [])
        if not items:
            break

        for item in items:
            track = track_from_spotify(item.get("track"))
            if track:
                tracks.append(track)

        offset += len(items)
        print(f"\rSyncing Spotify library: {len(tracks)} tracks", end="", flush=True)

    print()

    seen_ids: set[str] = set()
    deduplicated: list[Track] = []
    for track in tracks:
        if track.id in seen_ids:
            continue
        seen_ids.add(track.id)
        deduplicated.append(track)

    logger.info("Fetched %s saved tracks (%s after de-duplication)", len(tracks), len(deduplicated))
    return deduplicated


def load_library_cache(path: Path = LIBRARY_CACHE_PATH) -> list[Track]:
    if not path.exists():
        return []

    try:
        with path.open("r", encoding="utf-8") as file:
            payload = json.load(file)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable library cache %s: %s", path, exc)
        return []

    raw_tracks = payload.get("tracks", []) if isinstance(payload, dict) else []
    tracks: list[Track] = []
    for entry in raw_tracks:
        track = Track.from_dict(entry) if isinstance(entry, dict) else None
        if track:
            tracks.append(track)

    return tracks


def save_library_cache(tracks: list[Track], path: Path = LIBRARY_CACHE_PATH) -> None:
    payload = {
        "synced_at_utc": datetime.now(timezone.utc).isoformat(),
        "track_count": len(tracks),
        "tracks": [track.to_dict() for track in tracks],
    }

    with path.open("w", encoding="utf-8") as file:
        json.dump(payload, file)


def load_or_sync_library(
    sp: spotipy.Spotify,
    refresh_library: bool,
    path: Path = LIBRARY_CACHE_PATH,
) -> list[Track]:
    if not refresh_library:
        cached_tracks = load_library_cache(path)
        if cached_tracks:
            print(f"Loaded {len(cached_tracks)} tracks from cache. Use --refresh-library to resync.")
            return cached_tracks

    print("Refreshing saved tracks from Spotify...")
    tracks = fetch_library_from_spotify(sp)
    save_library_cache(tracks, path)
    print(f"Saved {len(tracks)} tracks to {path}.")
    return tracks
