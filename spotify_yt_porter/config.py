"""
Configuration store

Credentials and run settings live in a JSON file under the data directory.
Environment variables take precedence over the file for client credentials.
"""

import json
import logging
import os
from pathlib import Path

from spotify_yt_porter.core.status import write_json_atomic

logger = logging.getLogger(__name__)

DATA_DIR = Path(os.environ.get("PORTER_DATA_DIR", "~/.spotify-yt-porter")).expanduser()
CONFIG_FILE = "config.json"
SPOTIFY_TOKEN_CACHE = ".spotify_token_cache"
YOUTUBE_TOKEN_FILE = ".youtube_token.json"
LAST_TRANSFER_FILE = "last_transfer.json"
LOG_FILE = "spotify_yt_porter.log"

DEFAULTS = {
    "spotify_redirect_uri": "http://127.0.0.1:8888/callback",
    "callback_port": 8888,
    "privacy_status": "private",
    "default_selection": "interactive",
    "requests_per_window": 1,
    "window_seconds": 0.3,
    "max_attempts": 1,
    "ranking": "relevance",
}

REQUIRED = ["spotify_client_id", "spotify_client_secret", "google_client_id", "google_client_secret"]

ENV_OVERRIDES = {
    "spotify_client_id": "SPOTIFY_CLIENT_ID",
    "spotify_client_secret": "SPOTIFY_CLIENT_SECRET",
    "google_client_id": "GOOGLE_CLIENT_ID",
    "google_client_secret": "GOOGLE_CLIENT_SECRET",
}

SELECTION_MODES = ("interactive", "all")
RANKINGS = ("relevance", "score")


class ConfigError(Exception):
    """Configuration missing or invalid."""
    pass


def config_path(data_dir: Path = DATA_DIR) -> Path:
    return data_dir / CONFIG_FILE


def load_stored(data_dir: Path = DATA_DIR) -> dict:
    """Return only what is saved in the config file."""
    path = config_path(data_dir)
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(f"Unreadable config file {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return data


def load_config(data_dir: Path = DATA_DIR) -> dict:
    """Defaults, then the config file, then environment overrides."""
    config = dict(DEFAULTS)
    config.update(load_stored(data_dir))

    for key, var in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            config[key] = value

    if config["default_selection"] not in SELECTION_MODES:
        raise ConfigError(
            f"default_selection must be one of {', '.join(SELECTION_MODES)}, "
            f"got {config['default_selection']!r}"
        )
    if config["ranking"] not in RANKINGS:
        raise ConfigError(f"ranking must be one of {', '.join(RANKINGS)}, got {config['ranking']!r}")
    return config


def require_credentials(config: dict) -> None:
    missing = [key for key in REQUIRED if not config.get(key)]
    if missing:
        raise ConfigError(f"Missing config: {', '.join(missing)}")


def save_config(values: dict, data_dir: Path = DATA_DIR) -> Path:
    """Atomically write the config file, readable only by the owner."""
    path = config_path(data_dir)
    write_json_atomic(path, values, mode=0o600)
    return path


def clear_tokens(data_dir: Path = DATA_DIR) -> list[Path]:
    """Delete both OAuth token caches. Returns the files removed."""
    removed = []
    for name in (SPOTIFY_TOKEN_CACHE, YOUTUBE_TOKEN_FILE):
        path = data_dir / name
        if path.exists():
            path.unlink()
            removed.append(path)
    logger.info("Authentication tokens cleared")
    return removed


def clear_config(data_dir: Path = DATA_DIR) -> list[Path]:
    removed = clear_tokens(data_dir)
    path = config_path(data_dir)
    if path.exists():
        path.unlink()
        removed.append(path)
    logger.info(f"Configuration and tokens cleared ({path})")
    return removed


def run_setup_wizard(prompt, data_dir: Path = DATA_DIR) -> dict | None:
    """Ask for API credentials, keeping current values as defaults.

    Returns the saved config, or None when a required value was left empty.
    """
    current = dict(DEFAULTS)
    current.update(load_stored(data_dir))

    prompt.print("--- API Credential Setup ---")
    prompt.print("Credentials come from the Spotify Developer Dashboard and Google Cloud Console.")
    prompt.print("Redirect URIs must match the ones registered with each service.")

    def ask(label: str, key: str) -> str:
        default = current.get(key) or ""
        suffix = f" [{default}]" if default else ""
        answer = prompt.input(f"{label}{suffix}: ").strip()
        return answer or str(default)

    values = dict(current)
    values["spotify_client_id"] = ask("Spotify Client ID", "spotify_client_id")
    values["spotify_client_secret"] = ask("Spotify Client Secret", "spotify_client_secret")
    values["spotify_redirect_uri"] = ask("Spotify Redirect URI", "spotify_redirect_uri")
    values["google_client_id"] = ask("Google Client ID", "google_client_id")
    values["google_client_secret"] = ask("Google Client Secret", "google_client_secret")

    port = ask("Port for OAuth callback server", "callback_port")
    try:
        values["callback_port"] = int(port)
    except ValueError:
        values["callback_port"] = DEFAULTS["callback_port"]

    if any(not values.get(key) for key in REQUIRED):
        prompt.print("Error: All Client IDs and Secrets are required.")
        return None

    path = save_config(values, data_dir)
    prompt.print("Configuration saved successfully!")
    prompt.print('Use "reset-auth" to clear existing tokens if needed.')
    prompt.print(f"Config file location: {path}")
    return values
