"""Data models for playlist transfers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

YOUTUBE_PLAYLIST_URL = "https://www.youtube.com/playlist?list={}"


class AuthError(Exception):
    """Credentials could not be obtained; aborts the run before any transfer."""
    pass


class CatalogFetchError(Exception):
    """A listing could not be fetched completely."""
    pass


@dataclass(frozen=True)
class Track:
    """A track from a Spotify playlist."""
    title: str
    performers: Tuple[str, ...]
    album: str
    duration_ms: int
    source_id: str


@dataclass(frozen=True)
class SourcePlaylist:
    """A playlist owned or followed by the Spotify user."""
    id: str
    name: str
    description: str
    owner_id: str
    track_count: int


@dataclass(frozen=True)
class MatchCandidate:
    """A YouTube video returned by search."""
    destination_item_id: str
    title: str
    channel: str


class SearchStatus(Enum):
    FOUND = "found"
    NO_MATCH = "no_match"
    FAILED = "failed"


@dataclass(frozen=True)
class SearchResult:
    status: SearchStatus
    candidates: Tuple[MatchCandidate, ...] = ()
    reason: str = ""

    @classmethod
    def found(cls, candidates) -> "SearchResult":
        return cls(SearchStatus.FOUND, tuple(candidates))

    @classmethod
    def no_match(cls) -> "SearchResult":
        return cls(SearchStatus.NO_MATCH)

    @classmethod
    def failed(cls, reason: str) -> "SearchResult":
        return cls(SearchStatus.FAILED, reason=reason)


@dataclass(frozen=True)
class CreateResult:
    playlist_id: str | None = None
    reason: str = ""

    @property
    def created(self) -> bool:
        return self.playlist_id is not None


class AddStatus(Enum):
    ADDED = "added"
    ALREADY_PRESENT = "already_present"
    POLICY_REJECTED = "policy_rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class AddResult:
    status: AddStatus
    reason: str = ""

    @property
    def success(self) -> bool:
        """Duplicates count as success: the video is in the playlist either way."""
        return self.status in (AddStatus.ADDED, AddStatus.ALREADY_PRESENT)


class OutcomeKind(Enum):
    ADDED = "added"
    NOT_FOUND = "not_found"
    ADD_FAILED = "add_failed"


@dataclass(frozen=True)
class TransferOutcome:
    """Result of transferring a single track."""
    kind: OutcomeKind
    item_id: str = ""
    reason: str = ""

    @classmethod
    def added(cls, item_id: str) -> "TransferOutcome":
        return cls(OutcomeKind.ADDED, item_id=item_id)

    @classmethod
    def not_found(cls, reason: str = "") -> "TransferOutcome":
        return cls(OutcomeKind.NOT_FOUND, reason=reason)

    @classmethod
    def add_failed(cls, reason: str) -> "TransferOutcome":
        return cls(OutcomeKind.ADD_FAILED, reason=reason)


class PlaylistState(Enum):
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class TransferReport:
    """Reconciliation summary for one playlist."""
    playlist_name: str
    destination_playlist_id: str | None = None
    added_count: int = 0
    not_found_count: int = 0
    failed_count: int = 0
    state: PlaylistState = PlaylistState.DONE
    error: str | None = None
    outcomes: List[TransferOutcome] = field(default_factory=list, repr=False)

    @classmethod
    def skipped(cls, playlist_name: str, error: str | None = None) -> "TransferReport":
        return cls(playlist_name=playlist_name, state=PlaylistState.SKIPPED, error=error)

    @classmethod
    def failure(cls, playlist_name: str, error: str) -> "TransferReport":
        return cls(playlist_name=playlist_name, state=PlaylistState.FAILED, error=error)

    def record(self, outcome: TransferOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.kind is OutcomeKind.ADDED:
            self.added_count += 1
        elif outcome.kind is OutcomeKind.NOT_FOUND:
            self.not_found_count += 1
        else:
            self.failed_count += 1

    @property
    def total(self) -> int:
        return self.added_count + self.not_found_count + self.failed_count

    @property
    def playlist_url(self) -> str | None:
        if not self.destination_playlist_id:
            return None
        return YOUTUBE_PLAYLIST_URL.format(self.destination_playlist_id)
