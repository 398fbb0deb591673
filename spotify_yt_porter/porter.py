#!/usr/bin/env python3
"""Spotify to YouTube playlist porter - command line entry point"""

import argparse
import logging
import os
import sys
from pathlib import Path

from spotify_yt_porter import config as config_store
from spotify_yt_porter.clients.auth import SpotifyTokenProvider, load_youtube_credentials
from spotify_yt_porter.clients.spotify import SpotifyClient
from spotify_yt_porter.clients.youtube import YouTubeClient
from spotify_yt_porter.config import ConfigError
from spotify_yt_porter.core.matcher import RANKERS
from spotify_yt_porter.core.models import AuthError, CatalogFetchError
from spotify_yt_porter.core.selection import (
    SelectAll, SelectByIds, SelectInteractive, SelectionError, SelectionMode, select_playlists,
)
from spotify_yt_porter.core.status import write_reports
from spotify_yt_porter.core.throttle import RateLimiter
from spotify_yt_porter.core.transfer_engine import TransferEngine
from spotify_yt_porter.prompt_io import ConsolePromptIO, PromptIO

PROG = "spotify-yt-porter"

logger = logging.getLogger(__name__)


def setup_logging(data_dir: Path, level_name: str | None = None) -> None:
    level_name = level_name or os.environ.get("LOG_LEVEL", "INFO")
    level = getattr(logging, level_name.upper(), logging.INFO)
    data_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.FileHandler(data_dir / config_store.LOG_FILE, encoding="utf-8"),
            logging.StreamHandler()
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=PROG, description="Transfer Spotify playlists to YouTube.")
    parser.add_argument("--log-level", default=None, help="Python logging level (default: $LOG_LEVEL or INFO)")
    parser.add_argument("--data-dir", type=Path, default=config_store.DATA_DIR,
                        help="Directory holding config, tokens and logs")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("configure", help="Set up Spotify and Google API credentials")
    subparsers.add_parser("reset-auth", help="Clear stored Spotify and Google authentication tokens")
    subparsers.add_parser("reset-all", help="Clear ALL stored configuration and tokens")

    transfer = subparsers.add_parser("transfer", help="Transfer playlists")
    transfer.add_argument("--all", action="store_true", help="Transfer all playlists")
    transfer.add_argument("-p", "--playlist", nargs="+", metavar="ID", default=[],
                          help="Specify one or more Spotify playlist IDs to transfer")
    return parser


def selection_mode(args: argparse.Namespace, config: dict) -> SelectionMode:
    if args.all:
        return SelectAll()
    if args.playlist:
        return SelectByIds(args.playlist)
    if config["default_selection"] == "all":
        return SelectAll()
    return SelectInteractive()


def build_clients(config: dict, data_dir: Path) -> tuple[SpotifyClient, YouTubeClient]:
    """Authorize against both services. Raises AuthError on failure."""
    logger.info("Authenticating with Spotify...")
    token_provider = SpotifyTokenProvider(
        config["spotify_client_id"],
        config["spotify_client_secret"],
        config["spotify_redirect_uri"],
        cache_path=data_dir / config_store.SPOTIFY_TOKEN_CACHE,
    )
    # Authorize now so a bad token fails the run before any transfer starts.
    token_provider.get_access_token()
    spotify = SpotifyClient(token_provider)

    logger.info("Authenticating with Google (YouTube)...")
    credentials = load_youtube_credentials(
        config["google_client_id"],
        config["google_client_secret"],
        token_path=data_dir / config_store.YOUTUBE_TOKEN_FILE,
        port=int(config["callback_port"]),
    )
    youtube = YouTubeClient.from_credentials(
        credentials,
        max_attempts=int(config["max_attempts"]),
        privacy_status=config["privacy_status"],
    )
    return spotify, youtube


def run_transfer(spotify: SpotifyClient, youtube: YouTubeClient, mode: SelectionMode,
                 config: dict, data_dir: Path, prompt: PromptIO) -> int:
    try:
        user_id, display_name = spotify.current_user()
        logger.info(f"Logged into Spotify as: {display_name} ({user_id})")
        playlists = spotify.list_playlists(user_id)
    except CatalogFetchError as e:
        logger.error(f"Failed to get Spotify user data: {e}")
        return 1

    if not playlists:
        logger.warning("No Spotify playlists found for this user.")
        return 0

    try:
        selection = select_playlists(playlists, mode, prompt)
    except (SelectionError, EOFError) as e:
        logger.error(f"No playlists selected: {e}")
        return 1

    if not selection.playlists:
        logger.warning("No playlists selected for transfer. Exiting.")
        return 0

    limiter = RateLimiter(int(config["requests_per_window"]), float(config["window_seconds"]))
    engine = TransferEngine(spotify, youtube, limiter, rank=RANKERS[config["ranking"]])
    reports = engine.transfer_all(selection.playlists)
    write_reports(reports, data_dir / config_store.LAST_TRANSFER_FILE)
    return 0


def cmd_transfer(args: argparse.Namespace, prompt: PromptIO) -> int:
    data_dir = args.data_dir
    logger.info("--- Spotify to YouTube Playlist Transfer ---")
    try:
        config = config_store.load_config(data_dir)
        config_store.require_credentials(config)
    except ConfigError as e:
        logger.error(f"API credentials not configured ({e}). Please run: {PROG} configure")
        return 1

    try:
        spotify, youtube = build_clients(config, data_dir)
    except AuthError as e:
        logger.error(f"Authentication failed: {e}")
        logger.error(f"Ensure credentials are correct and the callback server can run on port {config['callback_port']}.")
        logger.error('You might need to run "reset-auth" and try again.')
        return 1

    return run_transfer(spotify, youtube, selection_mode(args, config), config, data_dir, prompt)


def main(argv: list[str] | None = None, prompt: PromptIO | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.data_dir, args.log_level)
    prompt = prompt or ConsolePromptIO()

    try:
        if args.command == "configure":
            return 0 if config_store.run_setup_wizard(prompt, args.data_dir) else 1
        if args.command == "reset-auth":
            config_store.clear_tokens(args.data_dir)
            return 0
        if args.command == "reset-all":
            config_store.clear_config(args.data_dir)
            return 0
        return cmd_transfer(args, prompt)

    except AuthError as e:
        logger.error(f"Authentication failed: {e}")
        return 1
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
