"""
Track matching

Builds the search query for a Spotify track and picks a YouTube video from
the search results. Ranking is a pure function ``rank(candidates, track)``;
the default keeps the search engine's relevance order.
"""

import logging
from typing import Callable, Protocol, Sequence

from spotify_yt_porter.core.models import MatchCandidate, SearchResult, SearchStatus, Track

logger = logging.getLogger(__name__)

RankStrategy = Callable[[Sequence[MatchCandidate], Track], list[MatchCandidate]]


class SearchCatalog(Protocol):
    def search(self, query: str) -> SearchResult: ...


def build_query(title: str, performers: Sequence[str]) -> str:
    return f"{title} {', '.join(performers)}"


def identity_rank(candidates: Sequence[MatchCandidate], track: Track) -> list[MatchCandidate]:
    return list(candidates)


def _normalize(s: str) -> str:
    return " ".join(s.lower().split())


def _fuzzy_contains(haystack: str, needle: str) -> bool:
    """Check if needle is contained in haystack, with some fuzzy tolerance."""
    if not needle:
        return False
    if needle in haystack:
        return True

    # Handle common variations (e.g., "The Weeknd" vs "Weeknd")
    needle_words = needle.split()
    if len(needle_words) > 1:
        matches = sum(1 for word in needle_words if word in haystack)
        return matches >= len(needle_words) * 0.7

    return False


def _score(candidate: MatchCandidate, track: Track) -> int:
    """
    Scoring:
    - +10: Title contains track name
    - +10: Title contains a performer name
    - +5: Channel name contains a performer name (likely official)
    - +3: Title contains "official", channel is VEVO
    - +2: Title contains "audio"
    - penalties for cover/karaoke/instrumental, and remix/live unless the
      track itself is one
    """
    title = _normalize(candidate.title)
    channel = _normalize(candidate.channel)
    track_title = _normalize(track.title)
    performers = [_normalize(p) for p in track.performers]

    score = 0
    if _fuzzy_contains(title, track_title):
        score += 10
    if any(_fuzzy_contains(title, p) for p in performers):
        score += 10
    if any(_fuzzy_contains(channel, p) for p in performers):
        score += 5

    if "official" in title:
        score += 3
    if "audio" in title:
        score += 2
    if "vevo" in channel:
        score += 3

    if "cover" in title and "cover" not in track_title:
        score -= 10
    if "karaoke" in title or "instrumental" in title:
        score -= 10
    if "remix" in title and "remix" not in track_title:
        score -= 5
    if "live" in title and "live" not in track_title:
        score -= 3
    return score


def score_rank(candidates: Sequence[MatchCandidate], track: Track) -> list[MatchCandidate]:
    """Order by heuristic score; ties keep relevance order."""
    scored = sorted(enumerate(candidates), key=lambda pair: (-_score(pair[1], track), pair[0]))
    return [candidate for _, candidate in scored]


RANKERS: dict[str, RankStrategy] = {
    "relevance": identity_rank,
    "score": score_rank,
}


def select_best(candidates: Sequence[MatchCandidate], track: Track,
                rank: RankStrategy = identity_rank) -> MatchCandidate | None:
    ranked = rank(candidates, track)
    return ranked[0] if ranked else None


class Matcher:
    """Resolves tracks against a destination catalog."""

    def __init__(self, catalog: SearchCatalog, rank: RankStrategy = identity_rank):
        self._catalog = catalog
        self._rank = rank

    def resolve(self, track: Track) -> tuple[SearchResult, MatchCandidate | None]:
        """Search for a track; the candidate is None unless the search found something."""
        result = self._catalog.search(build_query(track.title, track.performers))
        if result.status is not SearchStatus.FOUND:
            return result, None
        best = select_best(result.candidates, track, self._rank)
        if best is not None:
            logger.debug(f"Best match for \"{track.title}\": {best.title} ({best.channel})")
        return result, best
