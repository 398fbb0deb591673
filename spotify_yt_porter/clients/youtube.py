"""
YouTube Data API v3 Client

Destination catalog: search, playlist creation and playlist inserts.
Every operation returns a tagged result instead of raising, so a single
failed request never aborts a transfer.
"""

import json
import logging
import time
from typing import Any, Callable, TypeVar

import httplib2
from google.auth.exceptions import TransportError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from spotify_yt_porter.core.models import (
    AddResult, AddStatus, AuthError, CreateResult, MatchCandidate, SearchResult,
)

logger = logging.getLogger(__name__)

MUSIC_CATEGORY_ID = "10"
SEARCH_WINDOW = 5
DUPLICATE_REASONS = {"duplicate", "playlistItemDuplicate"}
COMMENTS_DISABLED = "disabled comments"
NETWORK_ERRORS = (ConnectionError, TimeoutError, OSError, httplib2.HttpLib2Error, TransportError)

T = TypeVar('T')


class YouTubeAuthError(AuthError):
    """YouTube authentication failed."""
    pass


class YouTubeAPIError(Exception):
    """YouTube API operation failed."""

    def __init__(self, message: str, status: int = 0, reason: str = "", detail: str = ""):
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.detail = detail


def _error_details(e: HttpError) -> tuple[str, str]:
    """Return (reason, message) of the first error entry in an API error body."""
    try:
        content = e.content.decode("utf-8") if isinstance(e.content, bytes) else e.content
        error = json.loads(content).get("error", {})
    except (ValueError, AttributeError):
        return "", str(e)
    errors = error.get("errors") or [{}]
    first = errors[0] if isinstance(errors[0], dict) else {}
    return first.get("reason", ""), first.get("message") or error.get("message", "")


class YouTubeClient:
    """YouTube Data API client.

    ``max_attempts`` > 1 enables retries for server and network errors only;
    client errors (quota, duplicates, forbidden) are never retried.
    """

    def __init__(self, service: Any, max_attempts: int = 1,
                 privacy_status: str = "private", backoff: float = 1.0):
        self._service = service
        self._max_attempts = max(1, max_attempts)
        self._privacy_status = privacy_status
        self._backoff = backoff

    @classmethod
    def from_credentials(cls, credentials: Any, **kwargs) -> "YouTubeClient":
        try:
            service = build("youtube", "v3", credentials=credentials, cache_discovery=False)
        except Exception as e:
            raise YouTubeAuthError(f"Failed to build YouTube service: {e}")
        logger.info("YouTube client initialized")
        return cls(service, **kwargs)

    def _execute(self, operation: Callable[[], T], name: str) -> T:
        """Run operation, translating failures into YouTubeAPIError."""
        for attempt in range(self._max_attempts):
            last = attempt == self._max_attempts - 1
            try:
                return operation()
            except HttpError as e:
                status = e.resp.status if e.resp else 0
                reason, detail = _error_details(e)

                if status >= 500 and not last:
                    wait = self._backoff * 2 ** attempt
                    logger.warning(f"Server error on {name}, retrying in {wait:.0f}s...")
                    time.sleep(wait)
                    continue

                raise YouTubeAPIError(f"API error on {name}: {detail or e}",
                                      status=status, reason=reason, detail=detail)

            except NETWORK_ERRORS as e:
                if not last:
                    wait = self._backoff * 2 ** attempt
                    logger.warning(f"Network error on {name}, retrying in {wait:.0f}s...")
                    time.sleep(wait)
                    continue
                raise YouTubeAPIError(f"Network error on {name}: {e}")

            except Exception as e:
                raise YouTubeAPIError(f"Request error on {name}: {e}")

        raise YouTubeAPIError(f"{name} failed after {self._max_attempts} attempts")

    def search(self, query: str) -> SearchResult:
        """Search music videos; candidates keep the server's relevance order."""
        def do_search():
            return self._service.search().list(
                part="snippet",
                q=query,
                type="video",
                videoCategoryId=MUSIC_CATEGORY_ID,
                maxResults=SEARCH_WINDOW,
            ).execute()

        logger.debug(f"Searching YouTube for: \"{query}\"")
        try:
            response = self._execute(do_search, f"search '{query}'")
        except YouTubeAPIError as e:
            if e.reason in ("quotaExceeded", "rateLimitExceeded"):
                logger.error(f"Search quota exhausted for \"{query}\": {e.detail}")
            else:
                logger.error(f"Search failed for \"{query}\": {e}")
            return SearchResult.failed(str(e))

        candidates = [c for c in map(self._extract_candidate, response.get("items", [])) if c]
        if not candidates:
            logger.debug(f"No relevant video found for \"{query}\"")
            return SearchResult.no_match()

        logger.debug(f"Found: \"{candidates[0].title}\" (ID: {candidates[0].destination_item_id})")
        return SearchResult.found(candidates)

    def _extract_candidate(self, item: dict) -> MatchCandidate | None:
        video_id = (item.get("id") or {}).get("videoId")
        if not video_id:
            return None
        snippet = item.get("snippet") or {}
        return MatchCandidate(
            destination_item_id=video_id,
            title=snippet.get("title", ""),
            channel=snippet.get("channelTitle", ""),
        )

    def create_playlist(self, title: str, description: str) -> CreateResult:
        def do_insert():
            return self._service.playlists().insert(
                part="snippet,status",
                body={
                    "snippet": {
                        "title": title,
                        "description": description or f"Playlist migrated from Spotify - {title}",
                    },
                    "status": {"privacyStatus": self._privacy_status},
                },
            ).execute()

        logger.info(f"Creating YouTube playlist: \"{title}\"")
        try:
            response = self._execute(do_insert, f"create playlist '{title}'")
        except YouTubeAPIError as e:
            logger.error(f"Error creating YouTube playlist \"{title}\": {e}")
            return CreateResult(reason=str(e))

        playlist_id = response.get("id")
        if not playlist_id:
            logger.error(f"Playlist insert for \"{title}\" returned no id")
            return CreateResult(reason="response missing playlist id")

        logger.info(f"Created playlist with ID: {playlist_id}")
        return CreateResult(playlist_id=playlist_id)

    def add_item(self, playlist_id: str, video_id: str) -> AddResult:
        """Append a video to a playlist. Duplicates are reported, not failed."""
        def do_insert():
            return self._service.playlistItems().insert(
                part="snippet",
                body={
                    "snippet": {
                        "playlistId": playlist_id,
                        "resourceId": {"kind": "youtube#video", "videoId": video_id},
                    }
                },
            ).execute()

        try:
            self._execute(do_insert, f"add {video_id}")
        except YouTubeAPIError as e:
            return self._classify_add_error(e, playlist_id, video_id)
        return AddResult(AddStatus.ADDED)

    def _classify_add_error(self, e: YouTubeAPIError, playlist_id: str, video_id: str) -> AddResult:
        if e.reason in DUPLICATE_REASONS:
            logger.warning(f"Video {video_id} already exists in playlist {playlist_id}. Skipping.")
            return AddResult(AddStatus.ALREADY_PRESENT)

        # The API reports this for some videos whose real rejection cause is
        # not exposed; keep it narrow until the error taxonomy is confirmed.
        if e.reason == "forbidden" and COMMENTS_DISABLED in e.detail:
            logger.warning(f"Video {video_id} rejected ({e.detail}). Skipping.")
            return AddResult(AddStatus.POLICY_REJECTED, reason=e.detail)

        logger.error(f"Error adding video {video_id} to playlist {playlist_id}: {e.detail or e}")
        return AddResult(AddStatus.FAILED, reason=e.detail or str(e))
