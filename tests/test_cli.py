"""Tests for the printops CLI.

Verifies that:
- Network commands wrap their async implementation with ``asyncio.run``
- The argument parser wires every subcommand and rejects bad options
- export/import/delete-all run end to end against an in-memory store
- validate and profiles only read local files
"""

import argparse
import asyncio
import inspect
import io
import json
import sqlite3
import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from conftest import InMemoryStore, InMemoryUpsertStore, sample_data
from printops import cli
from printops.snapshot.builder import build_snapshot, write_artifact


@pytest.fixture
def output() -> io.StringIO:
    """Capture everything the CLI prints."""
    buffer = io.StringIO()
    with patch("printops.cli.console", Console(file=buffer, width=200)):
        yield buffer


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "printops.toml"
    path.write_text(
        textwrap.dedent(
            f"""\
            default_profile = "dev"

            [profiles.dev]
            provider = "postgres"
            url = "postgresql://u:pw@localhost/printops"
            description = "Development"

            [profiles.hosted]
            provider = "supabase"
            url = "https://abc.supabase.co"
            key = "k"

            [local]
            path = "{(tmp_path / 'local.db').as_posix()}"

            [preferences]
            path = "{(tmp_path / 'prefs.json').as_posix()}"
            """
        )
    )
    return path


@pytest.fixture
def artifact_path(tmp_path: Path) -> Path:
    snapshot = asyncio.run(build_snapshot(InMemoryStore(sample_data())))
    return Path(write_artifact(snapshot, str(tmp_path / "artifact.json")))


def _run(*argv: str) -> int:
    with patch("sys.argv", ["printops", *argv]):
        return cli.main()


# ============================================================================
# Async wrapping
# ============================================================================


class TestAsyncWrapping:
    """Commands that talk to a store run through asyncio.run."""

    @pytest.mark.parametrize(
        "name", ["_async_export", "_async_import", "_async_migrate_local", "_async_delete_all"]
    )
    def test_async_implementations(self, name: str) -> None:
        assert inspect.iscoroutinefunction(getattr(cli, name))

    @pytest.mark.parametrize(
        "name", ["cmd_export", "cmd_import", "cmd_migrate_local", "cmd_delete_all"]
    )
    def test_wrappers_call_asyncio_run(self, name: str) -> None:
        source = inspect.getsource(getattr(cli, name))
        assert "asyncio.run(" in source

    @pytest.mark.parametrize("name", ["cmd_validate", "cmd_profiles"])
    def test_local_commands_are_sync(self, name: str) -> None:
        assert not inspect.iscoroutinefunction(getattr(cli, name))


# ============================================================================
# Argument parsing
# ============================================================================


class TestCLIArguments:
    def test_dispatches_with_global_options(self) -> None:
        with patch("printops.cli.cmd_profiles", return_value=0) as mock_profiles:
            assert _run("--env-prefix", "APP_", "--profile", "prod", "profiles") == 0
        args = mock_profiles.call_args[0][0]
        assert args.env_prefix == "APP_"
        assert args.profile == "prod"

    def test_import_options(self) -> None:
        with patch("printops.cli.cmd_import", return_value=0) as mock_import:
            _run("import", "a.json", "--merge", "--skip-validation", "--batch-size", "25", "-y")
        args = mock_import.call_args[0][0]
        assert args.path == "a.json"
        assert args.merge and args.skip_validation and args.yes
        assert args.batch_size == 25
        assert args.refresh_toner_levels is False

    def test_import_defaults(self) -> None:
        with patch("printops.cli.cmd_import", return_value=0) as mock_import:
            _run("import", "a.json")
        args = mock_import.call_args[0][0]
        assert args.merge is False
        assert args.batch_size is None

    def test_batch_size_must_be_positive(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _run("import", "a.json", "--batch-size", "0")
        assert exc_info.value.code == 2

    def test_validate_requires_path(self) -> None:
        with pytest.raises(SystemExit):
            _run("validate")

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            _run()

    def test_export_output(self) -> None:
        with patch("printops.cli.cmd_export", return_value=0) as mock_export:
            _run("export", "-o", "out.json")
        assert mock_export.call_args[0][0].output == "out.json"


# ============================================================================
# validate / profiles
# ============================================================================


class TestValidate:
    def test_valid_artifact(self, artifact_path: Path, output: io.StringIO) -> None:
        assert cli.cmd_validate(argparse.Namespace(path=str(artifact_path))) == 0
        assert "Artifact is valid" in output.getvalue()

    def test_tampered_artifact(self, artifact_path: Path, output: io.StringIO) -> None:
        raw = json.loads(artifact_path.read_text())
        raw["data"]["users"][0]["name"] = "Mallory"
        artifact_path.write_text(json.dumps(raw))
        assert cli.cmd_validate(argparse.Namespace(path=str(artifact_path))) == 1
        assert "invalid" in output.getvalue()

    def test_unreadable_artifact(self, tmp_path: Path, output: io.StringIO) -> None:
        path = tmp_path / "broken.json"
        path.write_text("not json")
        assert cli.cmd_validate(argparse.Namespace(path=str(path))) == 1
        assert "Error" in output.getvalue()


class TestProfiles:
    def test_lists_profiles(self, config_path: Path, output: io.StringIO, monkeypatch) -> None:
        monkeypatch.delenv("DB_PROFILE", raising=False)
        assert _run("--config", str(config_path), "profiles") == 0
        text = output.getvalue()
        assert "dev" in text
        assert "hosted" in text
        assert "active profile" in text

    def test_missing_config(self, tmp_path: Path, output: io.StringIO) -> None:
        assert _run("--config", str(tmp_path / "absent.toml"), "profiles") == 1
        assert "Config not found" in output.getvalue()


# ============================================================================
# Store commands
# ============================================================================


class TestExport:
    def test_writes_artifact(
        self, config_path: Path, tmp_path: Path, output: io.StringIO
    ) -> None:
        store = InMemoryUpsertStore(sample_data())
        out = tmp_path / "export.json"
        with patch("printops.cli.get_backing_store", return_value=store):
            assert _run("--config", str(config_path), "export", "-o", str(out)) == 0
        raw = json.loads(out.read_text())
        assert raw["metadata"]["totalRecords"] == 8
        assert store.closed
        assert "Artifact written" in output.getvalue()

    def test_unreachable_store(
        self, config_path: Path, tmp_path: Path, output: io.StringIO
    ) -> None:
        class Unreachable(InMemoryUpsertStore):
            async def init(self) -> None:
                raise ConnectionRefusedError("connection refused")

        store = Unreachable()
        out = tmp_path / "export.json"
        with patch("printops.cli.get_backing_store", return_value=store):
            assert _run("--config", str(config_path), "export", "-o", str(out)) == 1
        assert not out.exists()
        assert store.closed
        assert "Export failed" in output.getvalue()


class TestImport:
    def test_replace_with_yes(
        self, config_path: Path, artifact_path: Path, output: io.StringIO
    ) -> None:
        store = InMemoryUpsertStore({"users": [{"id": "stale"}]})
        with patch("printops.cli.get_backing_store", return_value=store):
            code = _run("--config", str(config_path), "import", str(artifact_path), "--yes")
        assert code == 0
        assert [u["id"] for u in store.records("users")] == ["u1"]
        assert store.closed
        assert "Import complete" in output.getvalue()

    def test_declined_prompt(
        self, config_path: Path, artifact_path: Path, output: io.StringIO
    ) -> None:
        store = InMemoryUpsertStore({"users": [{"id": "stale"}]})
        with patch("printops.cli.get_backing_store", return_value=store), patch(
            "printops.cli.Confirm.ask", return_value=False
        ):
            code = _run("--config", str(config_path), "import", str(artifact_path))
        assert code == 1
        assert store.write_count == 0
        assert "Cancelled" in output.getvalue()

    def test_missing_artifact(self, config_path: Path, tmp_path: Path, output: io.StringIO) -> None:
        with patch("printops.cli.get_backing_store") as mock_factory:
            code = _run("--config", str(config_path), "import", str(tmp_path / "nope.json"), "-y")
        assert code == 1
        mock_factory.assert_not_called()

    def test_unknown_profile(
        self, config_path: Path, artifact_path: Path, output: io.StringIO
    ) -> None:
        code = _run(
            "--config", str(config_path), "--profile", "staging", "import", str(artifact_path), "-y"
        )
        assert code == 1
        assert "'staging' not found" in output.getvalue()


class TestDeleteAll:
    def test_requires_confirm(self, config_path: Path, output: io.StringIO) -> None:
        store = InMemoryUpsertStore(sample_data())
        with patch("printops.cli.get_backing_store", return_value=store):
            assert _run("--config", str(config_path), "delete-all") == 0
        assert len(store.records("printers")) == 2
        assert "--confirm" in output.getvalue()

    def test_confirmed(self, config_path: Path, output: io.StringIO) -> None:
        store = InMemoryUpsertStore(sample_data())
        with patch("printops.cli.get_backing_store", return_value=store):
            assert _run("--config", str(config_path), "delete-all", "--confirm") == 0
        assert store.records("printers") == []
        assert store.closed

    def test_failure(self, config_path: Path, output: io.StringIO) -> None:
        store = InMemoryUpsertStore(sample_data())
        store.missing = {"orders"}
        with patch("printops.cli.get_backing_store", return_value=store):
            assert _run("--config", str(config_path), "delete-all", "--confirm") == 1
        assert "Delete failed" in output.getvalue()


def _make_local_db(path: Path, data: dict[str, list[dict]]) -> None:
    conn = sqlite3.connect(path)
    for name, records in data.items():
        conn.execute(f"CREATE TABLE {name} (id TEXT PRIMARY KEY, data TEXT)")
        for record in records:
            conn.execute(
                f"INSERT INTO {name} (id, data) VALUES (?, ?)",
                (record["id"], json.dumps(record)),
            )
    conn.commit()
    conn.close()


class TestMigrateLocal:
    def test_no_local_data(
        self, config_path: Path, tmp_path: Path, output: io.StringIO
    ) -> None:
        _make_local_db(tmp_path / "local.db", {})
        remote = InMemoryUpsertStore()
        with patch("printops.cli.get_backing_store", return_value=remote):
            assert _run("--config", str(config_path), "migrate-local", "--yes") == 1
        assert "No local data" in output.getvalue()
        assert remote.write_count == 0

    def test_migrates_without_printers(
        self, config_path: Path, tmp_path: Path, output: io.StringIO
    ) -> None:
        _make_local_db(
            tmp_path / "local.db",
            {"users": [{"id": "u1", "name": "Ana"}], "tickets": [{"id": "t1"}]},
        )
        remote = InMemoryUpsertStore()
        with patch("printops.cli.get_backing_store", return_value=remote):
            assert _run("--config", str(config_path), "migrate-local", "--yes") == 0
        assert [u["id"] for u in remote.records("users")] == ["u1"]
        assert [t["id"] for t in remote.records("tickets")] == ["t1"]
        assert remote.closed
        assert "Migrated 2 of 2 records successfully" in output.getvalue()


# ============================================================================
# Output helpers
# ============================================================================


class TestPrintWarnings:
    def test_truncated(self, output: io.StringIO) -> None:
        warnings = [f"warning {i}" for i in range(cli.MAX_WARNINGS_SHOWN + 5)]
        cli._print_warnings(warnings)
        text = output.getvalue()
        assert "warning 19" in text
        assert "warning 20" not in text
        assert "... and 5 more" in text

    def test_empty(self, output: io.StringIO) -> None:
        cli._print_warnings([])
        assert output.getvalue() == ""
