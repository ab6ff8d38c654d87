"""
Tests for the gitlack command line.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from gitlack.cli import build_parser, main
from gitlack.config import ENV_OVERRIDES
from gitlack.models import Project, User
from gitlack.store import SQLiteStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Keep the caller's environment out of configuration loading."""
    for variable in ENV_OVERRIDES:
        monkeypatch.delenv(variable, raising=False)
    with patch("gitlack.cli.setup_logging"):
        yield


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(f"""
slack:
  token: "xoxb-test"
gitlab:
  token: "glpat-test"
database:
  path: "{tmp_path / 'db' / 'gitlack.db'}"
  ping_attempts: 1
""")
    return path


@pytest.fixture
def seeded(config_file: Path, tmp_path: Path) -> Path:
    store = SQLiteStore.open(tmp_path / "db" / "gitlack.db")
    store.create_user(User(email="jane", gitlab_id=1, name="Jane"))
    store.create_project(Project(id=10, name="team/api"))
    store.close()
    return config_file


class TestParser:
    """Tests for argument parsing."""

    def test_set_channel_arguments(self) -> None:
        """Test the set-channel subcommand arguments."""
        args = build_parser().parse_args(["-c", "x.yaml", "project", "set-channel", "team/api", "chan"])

        assert args.config == "x.yaml"
        assert args.command == "project"
        assert args.subcommand == "set-channel"
        assert args.path == "team/api"
        assert args.channel == "chan"

    def test_sync_target_choices(self) -> None:
        """Test that sync only accepts known targets."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["sync", "groups"])


class TestCommands:
    """Tests for CLI commands against a real database file."""

    def test_no_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that running without a command prints help."""
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_config_validate(self, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test validating a complete configuration."""
        assert main(["-c", str(config_file), "config", "validate"]) == 0
        assert "✓ Configuration valid" in capsys.readouterr().out

    def test_config_validate_missing_tokens(self, tmp_path: Path,
                                            capsys: pytest.CaptureFixture[str]) -> None:
        """Test that missing tokens are reported."""
        path = tmp_path / "config.yaml"
        path.write_text("server:\n  port: 5000\n")

        assert main(["-c", str(path), "config", "validate"]) == 1
        assert "Missing settings: slack.token, gitlab.token" in capsys.readouterr().err

    def test_config_missing_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test a configuration path that does not exist."""
        assert main(["-c", "/nonexistent/config.yaml", "config", "validate"]) == 1
        assert "Error loading config" in capsys.readouterr().err

    def test_migrate(self, config_file: Path, tmp_path: Path,
                     capsys: pytest.CaptureFixture[str]) -> None:
        """Test applying migrations to a new database."""
        assert main(["-c", str(config_file), "migrate"]) == 0
        assert "✓ Applied 4 migration(s)" in capsys.readouterr().out
        assert (tmp_path / "db" / "gitlack.db").exists()

    def test_user_show(self, seeded: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test showing a user."""
        assert main(["-c", str(seeded), "user", "show", "jane"]) == 0
        assert "name: Jane" in capsys.readouterr().out

    def test_user_show_unknown(self, seeded: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test showing a user that does not exist."""
        assert main(["-c", str(seeded), "user", "show", "nobody"]) == 1
        assert "✗ User not found (HTTP 404)" in capsys.readouterr().err

    def test_project_set_channel(self, seeded: Path, tmp_path: Path) -> None:
        """Test setting a project's default channel."""
        assert main(["-c", str(seeded), "project", "set-channel", "team/api", "api-chan"]) == 0

        store = SQLiteStore.open(tmp_path / "db" / "gitlack.db")
        try:
            assert store.get_project_by_id(10).default_channel == "api-chan"
        finally:
            store.close()

    def test_group_set_channel(self, seeded: Path, tmp_path: Path) -> None:
        """Test setting a channel for a whole namespace."""
        assert main(["-c", str(seeded), "group", "set-channel", "team/", "team"]) == 0

        store = SQLiteStore.open(tmp_path / "db" / "gitlack.db")
        try:
            assert store.get_project_by_path("team/api").default_channel == "team"
        finally:
            store.close()

    def test_sync_all(self, seeded: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test a sync run with both platforms mocked out."""
        with patch("gitlack.cli.Reconciler") as reconciler_cls:
            assert main(["-c", str(seeded), "sync", "all"]) == 0

        reconciler = reconciler_cls.return_value
        reconciler.sync_users.assert_called_once_with()
        reconciler.sync_projects.assert_called_once_with()
        out = capsys.readouterr().out
        assert "All users are synchronized" in out
        assert "All projects are synchronized" in out
