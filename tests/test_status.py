import json
import stat

import pytest

from spotify_yt_porter.core.models import TransferOutcome, TransferReport
from spotify_yt_porter.core.status import write_json_atomic, write_reports


def test_writes_reports_and_totals(tmp_path):
    done = TransferReport("Mix", destination_playlist_id="PL1")
    for outcome in (TransferOutcome.added("v1"), TransferOutcome.added("v2"),
                    TransferOutcome.not_found(), TransferOutcome.add_failed("quota")):
        done.record(outcome)
    reports = [done, TransferReport.skipped("Empty"), TransferReport.failure("Broken", "quota")]
    path = tmp_path / "last_transfer.json"

    assert write_reports(reports, path)

    data = json.loads(path.read_text())
    assert [p["state"] for p in data["playlists"]] == ["done", "skipped", "failed"]
    assert data["playlists"][0]["playlist_url"] == "https://www.youtube.com/playlist?list=PL1"
    assert data["playlists"][0]["added"] == 2
    assert data["totals"] == {
        "done": 1, "skipped": 1, "failed": 1,
        "added": 2, "not_found": 1, "failed_tracks": 1,
    }
    assert "finished_at" in data


def test_unwritable_location_returns_false(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")

    assert write_reports([], blocker / "sub" / "last_transfer.json") is False


def test_atomic_write_leaves_no_temp_file_and_applies_mode(tmp_path):
    path = tmp_path / "config.json"

    write_json_atomic(path, {"a": 1}, mode=0o600)

    assert json.loads(path.read_text()) == {"a": 1}
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert [p.name for p in tmp_path.iterdir()] == ["config.json"]


def test_atomic_write_failure_keeps_previous_file(tmp_path):
    path = tmp_path / "last_transfer.json"
    path.write_text('{"old": true}')

    with pytest.raises(TypeError):
        write_json_atomic(path, {"bad": object()})

    assert json.loads(path.read_text()) == {"old": True}
    assert [p.name for p in tmp_path.iterdir()] == ["last_transfer.json"]
