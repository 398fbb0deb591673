"""Resolve which source playlists a run transfers."""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Union

from spotify_yt_porter.core.models import SourcePlaylist
from spotify_yt_porter.prompt_io import PromptIO

logger = logging.getLogger(__name__)


class SelectionError(Exception):
    """The user gave no usable selection."""
    pass


@dataclass(frozen=True)
class SelectAll:
    pass


@dataclass(frozen=True)
class SelectByIds:
    ids: Sequence[str]


@dataclass(frozen=True)
class SelectInteractive:
    pass


SelectionMode = Union[SelectAll, SelectByIds, SelectInteractive]


@dataclass
class Selection:
    playlists: List[SourcePlaylist]
    missing_ids: List[str] = field(default_factory=list)


def select_playlists(playlists: Sequence[SourcePlaylist], mode: SelectionMode,
                     prompt: PromptIO | None = None) -> Selection:
    """Return the chosen playlists in source listing order."""
    if isinstance(mode, SelectAll):
        logger.info(f"Selected all {len(playlists)} playlists for transfer")
        return Selection(list(playlists))

    if isinstance(mode, SelectByIds):
        return _select_by_ids(playlists, mode.ids)

    if isinstance(mode, SelectInteractive):
        if prompt is None:
            raise ValueError("Interactive selection needs a prompt")
        return Selection(_select_interactive(playlists, prompt))

    raise TypeError(f"Unknown selection mode: {mode!r}")


def _select_by_ids(playlists: Sequence[SourcePlaylist], ids: Sequence[str]) -> Selection:
    wanted = set(ids)
    chosen = [p for p in playlists if p.id in wanted]
    known = {p.id for p in chosen}
    # Keep the caller's order for the report, drop repeats.
    missing = list(dict.fromkeys(i for i in ids if i not in known))

    if chosen:
        names = ", ".join(p.name for p in chosen)
        logger.info(f"Selected {len(chosen)} playlist(s) by ID: {names}")
    if missing:
        logger.warning(f"Could not find playlist IDs: {', '.join(missing)}")
    return Selection(chosen, missing)


def parse_choice(answer: str, count: int) -> list[int]:
    """Parse '1, 3-5' or 'all' into sorted zero-based indexes.

    Raises SelectionError for empty or out-of-range input.
    """
    answer = answer.strip().lower()
    if not answer:
        raise SelectionError("Please select at least one playlist.")
    if answer == "all":
        return list(range(count))

    indexes = set()
    for token in answer.replace(",", " ").split():
        start, sep, end = token.partition("-")
        try:
            first = int(start)
            last = int(end) if sep else first
        except ValueError:
            raise SelectionError(f"Not a playlist number: {token}")
        if first > last or first < 1 or last > count:
            raise SelectionError(f"Choose numbers between 1 and {count}: {token}")
        indexes.update(range(first - 1, last))
    return sorted(indexes)


def _select_interactive(playlists: Sequence[SourcePlaylist], prompt: PromptIO) -> list[SourcePlaylist]:
    if not playlists:
        raise SelectionError("No playlists to choose from.")

    prompt.print("Select Spotify playlists to transfer:")
    for number, playlist in enumerate(playlists, 1):
        prompt.print(f"  {number:>3}. {playlist.name} ({playlist.track_count} tracks)")

    while True:
        answer = prompt.input("Playlists (e.g. 1,3-5 or 'all'): ")
        try:
            indexes = parse_choice(answer, len(playlists))
        except SelectionError as e:
            prompt.print(str(e))
            continue
        return [playlists[i] for i in indexes]
