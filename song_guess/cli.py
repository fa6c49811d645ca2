"""CLI entrypoint and high-level application orchestration."""

import argparse
import logging

from .app_logging import configure_logging
from .config import (
    DEFAULT_DIFFICULTY,
    DEFAULT_PLAYER_COMMAND,
    DEFAULT_TRACK_AMOUNT,
    LOG_PATH,
    TRACK_AMOUNTS,
)
from .engine import GameEngine
from .env import load_env_file
from .models import Difficulty, RoundPhase
from .playback import MpvPlaybackDriver
from .preview import DeezerPreviewResolver
from .sources import SpotifyTrackSource
from .spotify_client import SpotifyCredentials, close_sessions, create_spotify_client
from .ui import (
    HINT_COMMAND,
    QUIT_COMMANDS,
    TerminalView,
    build_results_lines,
    enter_alternate_screen,
    leave_alternate_screen,
    prompt_line,
    prompt_play_again,
)

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse CLI options controlling track selection and game difficulty."""
    parser = argparse.ArgumentParser(description="Guess the song from a short preview")
    parser.add_argument(
        "--difficulty",
        choices=[difficulty.value for difficulty in Difficulty],
        default=DEFAULT_DIFFICULTY,
        help="easy: 30s, medium: 20s, hard: 10s per track (default: hard).",
    )
    parser.add_argument(
        "--tracks",
        type=int,
        choices=TRACK_AMOUNTS,
        default=DEFAULT_TRACK_AMOUNT,
        help="Number of tracks per game (default: 5).",
    )
    parser.add_argument(
        "--artist",
        action="append",
        default=[],
        help="Play an artist's catalog instead of your library. Repeat for several artists.",
    )
    parser.add_argument(
        "--refresh-library",
        action="store_true",
        help="Re-fetch all saved tracks from Spotify and update local cache.",
    )
    parser.add_argument(
        "--player-command",
        default=DEFAULT_PLAYER_COMMAND,
        help="Audio player used for previews (default: mpv).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Log level for {LOG_PATH} (default: INFO).",
    )
    return parser.parse_args()


def resolve_artist_ids(source: SpotifyTrackSource, names: list[str]) -> list[str]:
    """Map each artist name to the top search hit's id."""
    artist_ids: list[str] = []
    for name in names:
        matches = source.search_artists(name)
        if not matches:
            raise RuntimeError(f"No Spotify artist found for: {name}")
        print(f"Using artist: {matches[0].get('name', name)}")
        artist_ids.append(matches[0]["id"])
    return artist_ids


def play_rounds(engine: GameEngine, view: TerminalView) -> bool:
    """Drive the engine from player input until the game ends; False if the player quit."""
    while True:
        snapshot = engine.snapshot()
        if snapshot.phase == RoundPhase.ENDED:
            return True

        if snapshot.phase == RoundPhase.READY_TO_PLAY:
            if prompt_line("Press Enter to play the snippet (q to quit) -> ").strip().lower() in QUIT_COMMANDS:
                return False
            played, error = engine.begin_playback()
            if not played:
                print(f"Could not start playback: {error}")
            continue

        if snapshot.phase == RoundPhase.PLAYING:
            view.snippet_over.wait()
            continue

        if snapshot.phase == RoundPhase.AWAITING_GUESS:
            guess = prompt_line(f"Song title ({HINT_COMMAND} for a hint, Enter to give up) -> ")
            if guess.strip() == HINT_COMMAND:
                engine.request_hint()
                continue
            engine.submit_guess(guess)
            continue

        if snapshot.phase == RoundPhase.RESOLVED:
            if prompt_line("Press Enter for the next track (q to quit) -> ").strip().lower() in QUIT_COMMANDS:
                return False
            engine.next_round()
            continue

        # Loading with inline preview lookup never lingers; nothing else to do.
        logger.warning("Unexpected phase %s in prompt loop", snapshot.phase)
        return False


def run_game(engine: GameEngine, args: argparse.Namespace, artist_ids: list[str]) -> None:
    view = TerminalView()
    unsubscribe = engine.subscribe(view)
    alternate_screen_enabled = enter_alternate_screen()
    completed = False
    try:
        engine.new_game(args.tracks, Difficulty(args.difficulty), artist_ids or None)
        completed = play_rounds(engine, view)
    finally:
        unsubscribe()
        if alternate_screen_enabled:
            leave_alternate_screen()

    snapshot = engine.snapshot()
    summary = engine.summary()
    if summary is not None:
        if not completed:
            print("Game ended by user.")
        print("\n".join(build_results_lines(snapshot, summary)))
    engine.abandon()


def main() -> None:
    """Run the full app lifecycle: setup, game loop, and shutdown."""
    args = parse_args()
    load_env_file()
    configure_logging(args.log_level)
    try:
        run_app(args)
    except RuntimeError as exc:
        logger.error("%s", exc)
        raise SystemExit(f"Error: {exc}") from exc


def run_app(args: argparse.Namespace) -> None:
    credentials = SpotifyCredentials.from_env()
    print(f"Using redirect URI: {credentials.redirect_uri}")

    driver = MpvPlaybackDriver(command=args.player_command)
    if not driver.is_available():
        raise RuntimeError(f"Audio player not found: {args.player_command}. Install mpv or pass --player-command.")

    # Create one shared Spotify client used across replayed runs.
    sp = create_spotify_client(credentials)
    resolver = DeezerPreviewResolver()
    try:
        profile = sp.current_user()
        account_name = profile.get("display_name") or profile.get("id")
        print(f"Connected to Spotify account: {account_name}")

        source = SpotifyTrackSource(sp, refresh_library=args.refresh_library)
        artist_ids = resolve_artist_ids(source, args.artist)
        engine = GameEngine(track_source=source, preview_resolver=resolver, driver=driver)

        while True:
            run_game(engine, args, artist_ids)
            if not prompt_play_again():
                break
    finally:
        driver.stop()
        resolver.close()
        # Ensure HTTP sessions are closed on normal exit or error.
        close_sessions(sp)
