"""Summary file of the last transfer run"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from spotify_yt_porter.core.models import PlaylistState, TransferReport

logger = logging.getLogger(__name__)


def report_to_dict(report: TransferReport) -> dict:
    return {
        "playlist_name": report.playlist_name,
        "state": report.state.value,
        "destination_playlist_id": report.destination_playlist_id,
        "playlist_url": report.playlist_url,
        "added": report.added_count,
        "not_found": report.not_found_count,
        "failed": report.failed_count,
        "error": report.error,
    }


def write_reports(reports: list[TransferReport], status_file: Path) -> bool:
    data = {
        "finished_at": datetime.now(timezone.utc).isoformat(),
        "playlists": [report_to_dict(r) for r in reports],
        "totals": {
            "done": sum(1 for r in reports if r.state is PlaylistState.DONE),
            "skipped": sum(1 for r in reports if r.state is PlaylistState.SKIPPED),
            "failed": sum(1 for r in reports if r.state is PlaylistState.FAILED),
            "added": sum(r.added_count for r in reports),
            "not_found": sum(r.not_found_count for r in reports),
            "failed_tracks": sum(r.failed_count for r in reports),
        },
    }
    try:
        write_json_atomic(status_file, data)
    except OSError as e:
        logger.warning(f"Could not write transfer summary to {status_file}: {e}")
        return False
    return True


def write_json_atomic(path: Path, data: dict, mode: int | None = None) -> None:
    """Write JSON through a temp file in the same directory, then rename over path.

    Readers never see a partial file. ``mode`` is applied before the rename.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        if mode is not None:
            os.chmod(temp_path, mode)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
