"""Spotify Web API client - source catalog for playlist transfers"""

import logging
from typing import Any, Callable, Iterator

import requests

from spotify_yt_porter.core.models import AuthError, CatalogFetchError, SourcePlaylist, Track

logger = logging.getLogger(__name__)

API_URL = "https://api.spotify.com/v1"
PLAYLIST_PAGE_SIZE = 50
TRACK_PAGE_SIZE = 100
TRACK_FIELDS = "items(track(id,name,artists(name),album(name),duration_ms)),next"


class SpotifyAuthError(AuthError):
    pass


class SpotifyClient:
    def __init__(self, token_provider: Callable[[], str],
                 session: requests.Session | None = None, timeout: float = 30.0):
        self._token_provider = token_provider
        self._session = session or requests.Session()
        self._timeout = timeout
        logger.info("Spotify client initialized")

    def _get(self, url: str, params: dict | None = None) -> dict:
        token = self._token_provider()
        response = self._session.get(
            url,
            headers={"Authorization": f"Bearer {token}"},
            params=params,
            timeout=self._timeout,
        )

        if response.status_code != 200:
            logger.error(f"Spotify API error {response.status_code}: {response.text[:200]}")
            response.raise_for_status()

        return response.json()

    def _paginate(self, path: str, params: dict, what: str) -> Iterator[Any]:
        """Yield raw items across all pages, following the ``next`` cursor.

        The first request carries ``params``; ``next`` URLs already embed them.
        """
        url: str | None = f"{API_URL}{path}"
        page_params: dict | None = params
        pages = 0

        try:
            while url:
                page = self._get(url, page_params)
                pages += 1
                yield from page.get("items") or []
                url = page.get("next")
                page_params = None
                if url:
                    logger.debug(f"Fetching page {pages + 1} of {what}...")
        except AuthError:
            raise
        except (requests.RequestException, ValueError) as e:
            raise CatalogFetchError(f"Could not fetch {what}: {e}")

    def current_user(self) -> tuple[str, str]:
        """Return (user_id, display_name) of the authorized user."""
        try:
            data = self._get(f"{API_URL}/me")
        except AuthError:
            raise
        except (requests.RequestException, ValueError) as e:
            raise CatalogFetchError(f"Could not fetch Spotify user profile: {e}")
        user_id = data.get("id", "")
        return user_id, data.get("display_name") or user_id

    def list_playlists(self, user_id: str) -> list[SourcePlaylist]:
        logger.info("Fetching Spotify playlists...")
        raw = list(self._paginate(
            f"/users/{user_id}/playlists",
            {"limit": PLAYLIST_PAGE_SIZE},
            f"playlists for user {user_id}",
        ))
        playlists = [self._extract_playlist(item) for item in raw if item]
        logger.info(f"Found {len(playlists)} playlists")
        return playlists

    def list_playlist_tracks(self, playlist_id: str) -> list[Track]:
        """List a playlist's tracks in order, dropping unavailable entries."""
        logger.info(f"Fetching tracks for playlist {playlist_id}...")
        tracks = []
        dropped = 0
        for item in self._paginate(
            f"/playlists/{playlist_id}/tracks",
            {"fields": TRACK_FIELDS, "limit": TRACK_PAGE_SIZE},
            f"tracks for playlist {playlist_id}",
        ):
            track = self._extract_track(item)
            if track is None:
                dropped += 1
            else:
                tracks.append(track)

        if dropped:
            logger.debug(f"Dropped {dropped} unavailable tracks from {playlist_id}")
        logger.info(f"Found {len(tracks)} valid tracks")
        return tracks

    def _extract_playlist(self, item: dict) -> SourcePlaylist:
        return SourcePlaylist(
            id=item.get("id", ""),
            name=item.get("name") or "",
            description=item.get("description") or "",
            owner_id=(item.get("owner") or {}).get("id", ""),
            track_count=(item.get("tracks") or {}).get("total", 0),
        )

    def _extract_track(self, item: dict | None) -> Track | None:
        track_data = (item or {}).get("track")
        if not track_data:
            return None

        artists = track_data.get("artists") or []
        return Track(
            title=track_data.get("name") or "",
            performers=tuple(a.get("name", "") for a in artists if a),
            album=(track_data.get("album") or {}).get("name", ""),
            duration_ms=track_data.get("duration_ms") or 0,
            source_id=track_data.get("id") or "",
        )
