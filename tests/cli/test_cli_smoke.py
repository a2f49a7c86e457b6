"""Smoke tests for the scrobblecharts CLI."""

from datetime import UTC, datetime, timedelta

from loguru import logger
import pytest
from typer.testing import CliRunner

from scrobblecharts import __version__
from scrobblecharts.domain.entities import TopTrackEntry
from scrobblecharts.domain.exceptions import RemoteAPIError
from scrobblecharts.infrastructure.cli import app as cli_app
from scrobblecharts.infrastructure.connectors.protocols import TrackInfo

runner = CliRunner()


class FakeConnector:
    """Async-context connector backed by the in-memory fakes."""

    def __init__(self, history, metadata, top_tracks=(), error=None):
        self.history = history
        self.metadata = metadata
        self.top_tracks = list(top_tracks)
        self.error = error
        self.top_track_calls = []
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    async def get_recent_plays(self, *args, **kwargs):
        return await self.history.get_recent_plays(*args, **kwargs)

    async def get_track_info(self, artist, track):
        return await self.metadata.get_track_info(artist, track)

    async def get_artist_top_tags(self, artist):
        return await self.metadata.get_artist_top_tags(artist)

    async def get_top_tracks(self, user=None, period=None, limit=20):
        self.top_track_calls.append((user, period, limit))
        if self.error is not None:
            raise self.error
        return self.top_tracks


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path, monkeypatch):
    """Keep the log file out of the repo and drop sinks bound to captured streams."""
    monkeypatch.chdir(tmp_path)
    yield
    logger.remove()


@pytest.fixture
def connector(history_api_factory, metadata_api_factory, make_play):
    recent = datetime.now(UTC) - timedelta(hours=2)
    history = history_api_factory(
        pages={
            1: (
                make_play("Miles Davis", "So What", recent),
                make_play("Miles Davis", "So What", recent - timedelta(minutes=10)),
            )
        }
    )
    metadata = metadata_api_factory(
        tracks={("Miles Davis", "So What"): TrackInfo(duration_raw=540, tags=("jazz",))}
    )
    return FakeConnector(
        history,
        metadata,
        top_tracks=[TopTrackEntry("Miles Davis", "So What", playcount=2)],
    )


@pytest.fixture
def use_connector(monkeypatch, connector):
    monkeypatch.setattr(cli_app, "_create_connector", lambda: connector)
    return connector


class TestCLISurface:
    def test_help_lists_commands(self):
        result = runner.invoke(cli_app.app, ["--help"])

        assert result.exit_code == 0
        for command in ("genres", "activity", "top-tracks", "version"):
            assert command in result.output

    def test_version(self):
        result = runner.invoke(cli_app.app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestChartCommands:
    def test_genres_from_history(self, use_connector):
        result = runner.invoke(cli_app.app, ["genres", "--user", "alice", "-r", "7d"])

        assert result.exit_code == 0, result.output
        assert "jazz" in result.output
        assert use_connector.top_track_calls == [("alice", "7day", 50)]
        assert use_connector.closed

    def test_genres_from_top_tracks_only(self, use_connector):
        result = runner.invoke(
            cli_app.app, ["genres", "--user", "alice", "--top-tracks-only"]
        )

        assert result.exit_code == 0, result.output
        assert "jazz" in result.output
        assert use_connector.history.calls == []

    def test_activity(self, use_connector):
        result = runner.invoke(cli_app.app, ["activity", "--user", "alice", "-r", "1m"])

        assert result.exit_code == 0, result.output
        assert "2 plays" in result.output
        assert use_connector.history.requested_pages == [1]

    def test_global_top_tracks(self, use_connector):
        result = runner.invoke(cli_app.app, ["top-tracks", "--global", "--limit", "5"])

        assert result.exit_code == 0, result.output
        assert "So What" in result.output
        assert use_connector.top_track_calls == [(None, "7day", 5)]


class TestCommandErrors:
    def test_remote_error_exits_with_message(self, monkeypatch, connector):
        connector.error = RemoteAPIError(6, "User not found")
        monkeypatch.setattr(cli_app, "_create_connector", lambda: connector)

        result = runner.invoke(cli_app.app, ["genres", "--user", "ghost"])

        assert result.exit_code == 1
        assert "User not found" in result.output

    def test_missing_user(self, monkeypatch, use_connector):
        monkeypatch.setattr(cli_app, "get_config", lambda key, default=None: None)

        result = runner.invoke(cli_app.app, ["activity"])

        assert result.exit_code == 2
        assert "No Last.fm user given" in result.output
        assert use_connector.history.calls == []
