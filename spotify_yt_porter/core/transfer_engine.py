"""
Transfer Engine

Copies Spotify playlists to new YouTube playlists, one playlist and one
track at a time.

Per playlist:
    Fetching -> Created -> Transferring -> Reporting -> Done
    Fetching with no tracks (or a failed fetch) ends in Skipped,
    a failed playlist creation ends in Failed.

Tracks are processed strictly in source order: progress lines are indexed
by position and duplicate detection on the YouTube side relies on earlier
inserts having completed. Nothing in here raises past a playlist boundary;
every problem ends up as a count in the TransferReport.

Quota costs:
- search.list: 100 units per track
- playlists.insert: 50 units per playlist
- playlistItems.insert: 50 units per matched track
"""

import logging
import time
from typing import Protocol, Sequence

from spotify_yt_porter.core.matcher import Matcher, RankStrategy, identity_rank
from spotify_yt_porter.core.models import (
    AddResult, AddStatus, CatalogFetchError, CreateResult, SearchResult, SearchStatus,
    SourcePlaylist, Track, TransferOutcome, TransferReport,
)
from spotify_yt_porter.core.throttle import RateLimiter

logger = logging.getLogger(__name__)


class SourceCatalog(Protocol):
    def list_playlist_tracks(self, playlist_id: str) -> list[Track]: ...


class DestinationCatalog(Protocol):
    def search(self, query: str) -> SearchResult: ...
    def create_playlist(self, title: str, description: str) -> CreateResult: ...
    def add_item(self, playlist_id: str, video_id: str) -> AddResult: ...


def _describe(track: Track) -> str:
    return f"\"{track.title}\" by {', '.join(track.performers)}"


class TransferEngine:
    """Runs the per-playlist transfer pipeline.

    ``search_errors_as_not_found`` controls how a failed search request is
    counted: as "not found" (default) or as a failed track.
    """

    def __init__(self, source: SourceCatalog, destination: DestinationCatalog,
                 limiter: RateLimiter | None = None, rank: RankStrategy = identity_rank,
                 search_errors_as_not_found: bool = True):
        self._source = source
        self._destination = destination
        self._limiter = limiter or RateLimiter()
        self._matcher = Matcher(destination, rank)
        self._search_errors_as_not_found = search_errors_as_not_found

    def transfer_all(self, playlists: Sequence[SourcePlaylist]) -> list[TransferReport]:
        logger.info(f"Starting transfer for {len(playlists)} playlist(s)...")
        reports = [self.transfer(playlist) for playlist in playlists]
        logger.info("--- All selected transfers complete! ---")
        return reports

    def transfer(self, playlist: SourcePlaylist) -> TransferReport:
        start = time.time()
        logger.info("=" * 50)
        logger.info(f"Processing Spotify playlist: \"{playlist.name}\" (ID: {playlist.id})")

        # Fetching
        try:
            tracks = self._source.list_playlist_tracks(playlist.id)
        except CatalogFetchError as e:
            logger.error(f"Could not fetch \"{playlist.name}\": {e}. Skipping.")
            return TransferReport.skipped(playlist.name, error=str(e))

        if not tracks:
            logger.warning(f"Playlist \"{playlist.name}\" is empty or has no accessible tracks. Skipping.")
            return TransferReport.skipped(playlist.name)

        # Created
        description = playlist.description or f"Migrated from Spotify: {playlist.name}"
        created = self._destination.create_playlist(playlist.name, description)
        if not created.created:
            logger.error(f"Failed to create YouTube playlist for \"{playlist.name}\". Skipping this playlist.")
            return TransferReport.failure(playlist.name, created.reason or "playlist creation failed")

        # Transferring
        report = TransferReport(playlist.name, destination_playlist_id=created.playlist_id)
        total = len(tracks)
        logger.info(f"Attempting to transfer {total} tracks...")

        for position, track in enumerate(tracks, 1):
            outcome = self._transfer_track(track, created.playlist_id, f"[{position}/{total}]")
            report.record(outcome)

        # Reporting
        self._log_summary(report, time.time() - start)
        return report

    def _transfer_track(self, track: Track, playlist_id: str, progress: str) -> TransferOutcome:
        label = f"{progress} {_describe(track)}"
        self._limiter.acquire()
        result, match = self._matcher.resolve(track)

        if match is None:
            if result.status is SearchStatus.FAILED and not self._search_errors_as_not_found:
                logger.warning(f"    {label} -> Search failed.")
                return TransferOutcome.add_failed(f"search failed: {result.reason}")
            logger.info(f"    {label} -> Not found.")
            return TransferOutcome.not_found(result.reason)

        added = self._destination.add_item(playlist_id, match.destination_item_id)
        if added.status is AddStatus.ADDED:
            logger.info(f"    {label} -> Added: \"{match.title}\"")
        elif added.status is AddStatus.ALREADY_PRESENT:
            logger.info(f"    {label} -> Already in playlist: \"{match.title}\"")
        else:
            logger.warning(f"    {label} -> Found, but failed to add.")
            return TransferOutcome.add_failed(added.reason or added.status.value)
        return TransferOutcome.added(match.destination_item_id)

    def _log_summary(self, report: TransferReport, duration: float) -> None:
        logger.info(f"Finished processing \"{report.playlist_name}\" in {duration:.1f}s")
        logger.info(f"  Successfully added: {report.added_count} tracks")
        logger.info(f"  Could not find: {report.not_found_count} tracks")
        if report.failed_count > 0:
            logger.warning(f"  Failed to add (found but error): {report.failed_count} tracks")
        logger.info(f"  Check the new YouTube playlist: {report.playlist_url}")
        logger.info("=" * 50)
