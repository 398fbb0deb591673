"""Shared fakes for the transfer pipeline tests."""

import pytest

from spotify_yt_porter.core.models import (
    AddResult, AddStatus, CreateResult, MatchCandidate, SearchResult, SourcePlaylist, Track,
)


def make_track(title, *performers, source_id=None):
    return Track(
        title=title,
        performers=tuple(performers) or ("Artist",),
        album="Album",
        duration_ms=200000,
        source_id=source_id or title.lower().replace(" ", "-"),
    )


def make_playlist(pl_id, name=None, description="", track_count=0):
    return SourcePlaylist(
        id=pl_id,
        name=name or f"Playlist {pl_id}",
        description=description,
        owner_id="me",
        track_count=track_count,
    )


def candidate(video_id, title="Video", channel="Channel"):
    return MatchCandidate(destination_item_id=video_id, title=title, channel=channel)


class FakeSource:
    """Serves fixed track lists; a value that is an exception is raised instead."""

    def __init__(self, tracks_by_playlist):
        self.tracks_by_playlist = tracks_by_playlist
        self.calls = []

    def list_playlist_tracks(self, playlist_id):
        self.calls.append(playlist_id)
        tracks = self.tracks_by_playlist.get(playlist_id, [])
        if isinstance(tracks, Exception):
            raise tracks
        return list(tracks)


class FakeDestination:
    """In-memory YouTube stand-in.

    ``search_results`` maps a query to a SearchResult (default: no match),
    ``add_failures`` maps a video id to the AddResult returned for it.
    """

    def __init__(self, search_results=None, add_failures=None, create_fails=False):
        self.search_results = search_results or {}
        self.add_failures = add_failures or {}
        self.create_fails = create_fails
        self.queries = []
        self.created = []
        self.playlists = {}

    def search(self, query):
        self.queries.append(query)
        return self.search_results.get(query, SearchResult.no_match())

    def create_playlist(self, title, description):
        self.created.append((title, description))
        if self.create_fails:
            return CreateResult(reason="quotaExceeded")
        playlist_id = f"yt-{len(self.created)}"
        self.playlists[playlist_id] = []
        return CreateResult(playlist_id=playlist_id)

    def add_item(self, playlist_id, video_id):
        if video_id in self.add_failures:
            return self.add_failures[video_id]
        items = self.playlists[playlist_id]
        if video_id in items:
            return AddResult(AddStatus.ALREADY_PRESENT)
        items.append(video_id)
        return AddResult(AddStatus.ADDED)


class NoWaitLimiter:
    def __init__(self):
        self.acquired = 0

    def acquire(self):
        self.acquired += 1
        return 0.0


@pytest.fixture
def limiter():
    return NoWaitLimiter()
