"""End-to-end tests for the command line entry point.

Clients are replaced with in-memory fakes; nothing touches the network.
"""

import json
import logging
from unittest.mock import patch

import pytest

from conftest import FakeDestination, candidate, make_playlist, make_track
from spotify_yt_porter import porter
from spotify_yt_porter.clients.youtube import YouTubeAuthError
from spotify_yt_porter.core.matcher import build_query
from spotify_yt_porter.core.models import CatalogFetchError, SearchResult
from spotify_yt_porter.prompt_io import BufferPromptIO

CREDENTIALS = {
    "spotify_client_id": "sid", "spotify_client_secret": "ss",
    "google_client_id": "gid", "google_client_secret": "gs",
    "window_seconds": 0,
}


class FakeSpotify:
    def __init__(self, playlists, tracks, fail_listing=False):
        self.playlists = playlists
        self.tracks = tracks
        self.fail_listing = fail_listing

    def current_user(self):
        return "me", "Me"

    def list_playlists(self, user_id):
        if self.fail_listing:
            raise CatalogFetchError("HTTP 503")
        return list(self.playlists)

    def list_playlist_tracks(self, playlist_id):
        return list(self.tracks.get(playlist_id, []))


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    for var in ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET"):
        monkeypatch.delenv(var, raising=False)
    (tmp_path / "config.json").write_text(json.dumps(CREDENTIALS))
    return tmp_path


@pytest.fixture
def library():
    song, other = make_track("Song", "Band"), make_track("Other", "Band")
    spotify = FakeSpotify(
        [make_playlist("a", "Alpha"), make_playlist("b", "Beta"), make_playlist("c", "Gamma")],
        {"a": [song, other], "b": [], "c": [song]},
    )
    youtube = FakeDestination(search_results={
        build_query(song.title, song.performers): SearchResult.found([candidate("v1", "Song")]),
    })
    return spotify, youtube


def run(data_dir, *argv, clients=None, prompt=None):
    with patch.object(porter, "build_clients", return_value=clients) as mock_build:
        code = porter.main(["--data-dir", str(data_dir), *argv], prompt=prompt or BufferPromptIO())
    return code, mock_build


class TestTransferCommand:
    def test_all_playlists(self, data_dir, library, caplog):
        caplog.set_level(logging.INFO, logger="spotify_yt_porter")
        spotify, youtube = library

        code, _ = run(data_dir, "transfer", "--all", clients=library)

        assert code == 0
        assert [title for title, _ in youtube.created] == ["Alpha", "Gamma"]
        assert "All selected transfers complete" in caplog.text
        summary = json.loads((data_dir / "last_transfer.json").read_text())
        assert [p["state"] for p in summary["playlists"]] == ["done", "skipped", "done"]
        assert summary["totals"]["added"] == 2
        assert summary["totals"]["not_found"] == 1

    def test_playlist_ids_with_unknown_id(self, data_dir, library, caplog):
        caplog.set_level(logging.INFO, logger="spotify_yt_porter")
        spotify, youtube = library

        code, _ = run(data_dir, "transfer", "-p", "c", "zzz", clients=library)

        assert code == 0
        assert [title for title, _ in youtube.created] == ["Gamma"]
        assert "zzz" in caplog.text

    def test_interactive_by_default(self, data_dir, library):
        spotify, youtube = library
        prompt = BufferPromptIO(inputs=["3"])

        code, _ = run(data_dir, "transfer", clients=library, prompt=prompt)

        assert code == 0
        assert [title for title, _ in youtube.created] == ["Gamma"]

    def test_configured_default_selection_all(self, data_dir, library):
        (data_dir / "config.json").write_text(json.dumps({**CREDENTIALS, "default_selection": "all"}))
        spotify, youtube = library

        code, _ = run(data_dir, "transfer", clients=library)

        assert code == 0
        assert len(youtube.created) == 2

    def test_interactive_aborted_exits_nonzero(self, data_dir, library):
        code, _ = run(data_dir, "transfer", clients=library, prompt=BufferPromptIO())
        assert code == 1

    def test_per_track_failures_still_exit_zero(self, data_dir):
        spotify = FakeSpotify([make_playlist("a")], {"a": [make_track("Missing")]})
        youtube = FakeDestination(create_fails=False)

        code, _ = run(data_dir, "transfer", "--all", clients=(spotify, youtube))

        assert code == 0

    def test_playlist_creation_failure_still_exit_zero(self, data_dir):
        spotify = FakeSpotify([make_playlist("a")], {"a": [make_track("Song")]})

        code, _ = run(data_dir, "transfer", "--all", clients=(spotify, FakeDestination(create_fails=True)))

        assert code == 0

    def test_no_playlists(self, data_dir):
        code, _ = run(data_dir, "transfer", "--all", clients=(FakeSpotify([], {}), FakeDestination()))
        assert code == 0

    def test_playlist_listing_failure_exits_nonzero(self, data_dir):
        spotify = FakeSpotify([], {}, fail_listing=True)

        code, _ = run(data_dir, "transfer", "--all", clients=(spotify, FakeDestination()))

        assert code == 1

    def test_missing_credentials_exits_nonzero(self, tmp_path, monkeypatch):
        for var in ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET"):
            monkeypatch.delenv(var, raising=False)

        code, mock_build = run(tmp_path, "transfer", "--all")

        assert code == 1
        mock_build.assert_not_called()

    def test_auth_failure_exits_before_transfer(self, data_dir):
        with patch.object(porter, "build_clients", side_effect=YouTubeAuthError("denied")), \
                patch.object(porter, "TransferEngine") as mock_engine:
            code = porter.main(["--data-dir", str(data_dir), "transfer", "--all"])

        assert code == 1
        mock_engine.assert_not_called()


class TestOtherCommands:
    def test_no_command_prints_help(self, capsys):
        assert porter.main([]) == 0
        assert "transfer" in capsys.readouterr().out

    def test_reset_auth(self, data_dir):
        (data_dir / ".youtube_token.json").write_text("{}")

        code, _ = run(data_dir, "reset-auth")

        assert code == 0
        assert not (data_dir / ".youtube_token.json").exists()
        assert (data_dir / "config.json").exists()

    def test_reset_all(self, data_dir):
        code, _ = run(data_dir, "reset-all")

        assert code == 0
        assert not (data_dir / "config.json").exists()

    def test_configure(self, tmp_path):
        prompt = BufferPromptIO(inputs=["sid", "ss", "", "gid", "gs", ""])

        code, _ = run(tmp_path, "configure", prompt=prompt)

        assert code == 0
        assert json.loads((tmp_path / "config.json").read_text())["google_client_id"] == "gid"


class TestSelectionMode:
    def parse(self, *argv):
        return porter.build_parser().parse_args(["transfer", *argv])

    def test_flags(self):
        config = {"default_selection": "interactive"}
        assert type(porter.selection_mode(self.parse("--all"), config)).__name__ == "SelectAll"
        mode = porter.selection_mode(self.parse("-p", "x", "y"), config)
        assert list(mode.ids) == ["x", "y"]
        assert type(porter.selection_mode(self.parse(), config)).__name__ == "SelectInteractive"


class TestBuildClients:
    @patch.object(porter.YouTubeClient, "from_credentials")
    @patch.object(porter, "load_youtube_credentials")
    @patch.object(porter, "SpotifyTokenProvider")
    def test_wires_config_into_clients(self, mock_provider, mock_load, mock_from, tmp_path):
        config = {**porter.config_store.DEFAULTS, **CREDENTIALS}

        spotify, youtube = porter.build_clients(config, tmp_path)

        mock_provider.return_value.get_access_token.assert_called_once()
        assert mock_provider.call_args.kwargs["cache_path"] == tmp_path / ".spotify_token_cache"
        assert mock_load.call_args.kwargs["token_path"] == tmp_path / ".youtube_token.json"
        assert mock_load.call_args.kwargs["port"] == 8888
        mock_from.assert_called_once_with(mock_load.return_value, max_attempts=1, privacy_status="private")
        assert youtube is mock_from.return_value

    @patch.object(porter, "load_youtube_credentials")
    @patch.object(porter, "SpotifyTokenProvider")
    def test_spotify_auth_failure_stops_early(self, mock_provider, mock_load, tmp_path):
        from spotify_yt_porter.clients.spotify import SpotifyAuthError
        mock_provider.return_value.get_access_token.side_effect = SpotifyAuthError("nope")

        with pytest.raises(SpotifyAuthError):
            porter.build_clients({**porter.config_store.DEFAULTS, **CREDENTIALS}, tmp_path)
        mock_load.assert_not_called()
