"""Tests for the cacheside CLI."""

from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from cacheside.cli import app

runner = CliRunner()


class TestServe:
    """Test the serve command."""

    def test_runs_app_factory(self) -> None:
        with patch("cacheside.cli.serve.uvicorn.run") as run:
            result = runner.invoke(app, ["serve", "--port", "9000", "--workers", "4"])

        assert result.exit_code == 0
        kwargs = run.call_args.kwargs
        assert kwargs["app"] == "cacheside.api.app:create_app"
        assert kwargs["factory"] is True
        assert kwargs["port"] == 9000
        assert kwargs["workers"] == 4

    def test_reload_forces_single_worker(self) -> None:
        with patch("cacheside.cli.serve.uvicorn.run") as run:
            runner.invoke(app, ["serve", "--reload", "--workers", "4"])

        assert run.call_args.kwargs["workers"] == 1
        assert run.call_args.kwargs["reload"] is True


class TestInitDb:
    """Test the init-db command."""

    def test_creates_tables(self) -> None:
        with (
            patch("cacheside.cli.db_cmd.init_db", AsyncMock()) as init_db,
            patch("cacheside.cli.db_cmd.close_db", AsyncMock()) as close_db,
        ):
            result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 0
        assert "created" in result.output
        init_db.assert_awaited_once()
        close_db.assert_awaited_once()

    def test_failure_exits_non_zero(self) -> None:
        with (
            patch("cacheside.cli.db_cmd.init_db", AsyncMock(side_effect=OSError("refused"))),
            patch("cacheside.cli.db_cmd.close_db", AsyncMock()) as close_db,
        ):
            result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 1
        close_db.assert_awaited_once()
