"""
OAuth token acquisition for both services.

Tokens are cached in the data directory and refreshed when expired; a
browser-based authorization-code flow runs only when no usable token exists.
"""

import logging
from pathlib import Path

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from spotipy.cache_handler import CacheFileHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from spotify_yt_porter.clients.spotify import SpotifyAuthError
from spotify_yt_porter.clients.youtube import YouTubeAuthError

logger = logging.getLogger(__name__)

SPOTIFY_SCOPES = "playlist-read-private playlist-read-collaborative user-read-private"
YOUTUBE_SCOPES = ["https://www.googleapis.com/auth/youtube.force-ssl"]
GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
CALLBACK_TIMEOUT = 60


class SpotifyTokenProvider:
    """Callable returning a valid Spotify access token."""

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str,
                 cache_path: Path, open_browser: bool = True):
        self._oauth = SpotifyOAuth(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            scope=SPOTIFY_SCOPES,
            cache_handler=CacheFileHandler(cache_path=str(cache_path)),
            open_browser=open_browser,
        )

    def get_access_token(self) -> str:
        try:
            token = self._oauth.get_access_token(as_dict=False)
        except SpotifyOauthError as e:
            raise SpotifyAuthError(f"Spotify authorization failed: {e}")
        if not token:
            raise SpotifyAuthError("Spotify returned no access token")
        return token

    __call__ = get_access_token


def _client_config(client_id: str, client_secret: str, port: int) -> dict:
    return {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": GOOGLE_AUTH_URI,
            "token_uri": GOOGLE_TOKEN_URI,
            "redirect_uris": [f"http://localhost:{port}/"],
        }
    }


def load_youtube_credentials(client_id: str, client_secret: str, token_path: Path,
                             port: int = 8888, open_browser: bool = True) -> Credentials:
    """Return usable Google credentials, authorizing in the browser if needed."""
    credentials = None
    if token_path.exists():
        try:
            credentials = Credentials.from_authorized_user_file(str(token_path), YOUTUBE_SCOPES)
            logger.info("Using existing Google token")
        except (ValueError, OSError) as e:
            logger.warning(f"Ignoring unreadable Google token file: {e}")

    if credentials is not None and credentials.valid:
        return credentials

    if credentials is not None and credentials.refresh_token:
        logger.info("Google token expired, refreshing...")
        try:
            credentials.refresh(Request())
        except GoogleAuthError as e:
            token_path.unlink(missing_ok=True)
            raise YouTubeAuthError(f"Failed to refresh Google token, re-authorization needed: {e}")
    else:
        logger.info("No valid Google token found, starting authorization flow...")
        flow = InstalledAppFlow.from_client_config(
            _client_config(client_id, client_secret, port), YOUTUBE_SCOPES
        )
        try:
            credentials = flow.run_local_server(
                port=port, open_browser=open_browser, timeout_seconds=CALLBACK_TIMEOUT
            )
        except Exception as e:
            raise YouTubeAuthError(f"Google authorization failed: {e}")
        if credentials is None:
            raise YouTubeAuthError("Authorization timed out")

    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(credentials.to_json(), encoding="utf-8")
    token_path.chmod(0o600)
    logger.info("Google token saved")
    return credentials
