"""End-to-end tests calling the command line entry points against SQLite files."""

import json

import pytest

from tests.helpers.sqlite_db import create_sqlite_db, read_rows
from user_store_sync import run_reconciliation
from user_store_sync.config import Config
from user_store_sync.errors import ReconciliationError, StoreConnectionError
from user_store_sync.scripts import init_store, list_records, reconcile
from user_store_sync.sync.engine import Phase


class TestRunReconciliation:
    """Test the programmatic entry point."""

    def test_success(self, source_db, dest_path):
        config = Config(source_url=f"sqlite:///{source_db}", destination_url=str(dest_path))

        result = run_reconciliation(config)

        assert result.records_migrated == 3
        assert read_rows(dest_path) == [(1, "Davida123"), (2, "Brianabc"), (3, "Jeff")]

    def test_malformed_descriptor_is_connecting_failure(self, source_db):
        """Test descriptor errors are reported as CONNECTING aborts, not process exits."""
        config = Config(source_url=str(source_db), destination_url="mysql://root@localhost/app")

        with pytest.raises(ReconciliationError) as exc_info:
            run_reconciliation(config)

        assert exc_info.value.phase == Phase.CONNECTING
        assert isinstance(exc_info.value.__cause__, StoreConnectionError)


class TestReconcileCommand:
    """Test the user-store-sync command."""

    def test_success_exits_zero(self, clean_env, source_db, dest_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            reconcile.main(["--source", str(source_db), "--destination", str(dest_path)])

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "USER STORE RECONCILIATION" in out
        assert "Migrated 3 records (3 inserted, 0 updated)" in out
        assert len(read_rows(dest_path)) == 3

    def test_environment_descriptors(self, clean_env, source_db, dest_path):
        clean_env.setenv("SOURCE_DATABASE_URL", str(source_db))
        clean_env.setenv("DESTINATION_DATABASE_URL", str(dest_path))

        with pytest.raises(SystemExit) as exc_info:
            reconcile.main([])

        assert exc_info.value.code == 0
        assert len(read_rows(dest_path)) == 3

    def test_empty_source_exits_zero(self, clean_env, empty_source_db, dest_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            reconcile.main(["--source", str(empty_source_db), "--destination", str(dest_path)])

        assert exc_info.value.code == 0
        assert "0 records migrated" in capsys.readouterr().out

    def test_abort_exits_one_with_phase(self, clean_env, tmp_path, dest_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            reconcile.main(["--source", str(tmp_path / "missing.db"), "--destination", str(dest_path)])

        assert exc_info.value.code == 1
        assert "Reconciliation aborted during connecting" in capsys.readouterr().out

    def test_upsert_failure_exits_one_and_keeps_destination(self, clean_env, source_db, tmp_path, capsys):
        dest = create_sqlite_db(
            tmp_path / "dst.db",
            [(1, "Old")],
            ddl="CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT CHECK (length(name) <= 4))",
        )

        with pytest.raises(SystemExit) as exc_info:
            reconcile.main(["--source", str(source_db), "--destination", str(dest)])

        assert exc_info.value.code == 1
        assert "aborted during replicating" in capsys.readouterr().out
        assert read_rows(dest) == [(1, "Old")]

    def test_missing_configuration_exits_one(self, clean_env, capsys):
        with pytest.raises(SystemExit) as exc_info:
            reconcile.main([])

        assert exc_info.value.code == 1
        assert "Missing required environment variables" in capsys.readouterr().out


class TestInitCommand:
    """Test the user-store-init command."""

    def test_creates_and_seeds(self, clean_env, dest_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            init_store.main(["--store", str(dest_path)])

        assert exc_info.value.code == 0
        assert "3 records seeded" in capsys.readouterr().out
        assert read_rows(dest_path) == [(1, "Davida123"), (2, "Brianabc"), (3, "Jeff")]

    def test_no_seed(self, clean_env, dest_path):
        with pytest.raises(SystemExit):
            init_store.main(["--store", str(dest_path), "--no-seed"])
        assert read_rows(dest_path) == []

    def test_uses_volume_path_by_default(self, clean_env, tmp_path):
        clean_env.setenv("RAILWAY_VOLUME_MOUNT_PATH", str(tmp_path))

        with pytest.raises(SystemExit) as exc_info:
            init_store.main([])

        assert exc_info.value.code == 0
        assert len(read_rows(tmp_path / "db.sqlite")) == 3

    def test_failure_exits_one(self, clean_env, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            init_store.main(["--store", str(tmp_path / "missing" / "db.sqlite")])

        assert exc_info.value.code == 1
        assert "Initialization failed" in capsys.readouterr().out


class TestListCommand:
    """Test the user-store-list command."""

    def test_prints_json_array(self, clean_env, source_db, capsys):
        list_records.main(["--store", str(source_db)])

        assert json.loads(capsys.readouterr().out) == [
            {"id": 1, "name": "Davida123"},
            {"id": 2, "name": "Brianabc"},
            {"id": 3, "name": "Jeff"},
        ]

    def test_empty_store_prints_empty_array(self, clean_env, empty_source_db, capsys):
        list_records.main(["--store", str(empty_source_db), "--pretty"])
        assert json.loads(capsys.readouterr().out) == []

    def test_lists_destination_after_reconciliation(self, clean_env, source_db, dest_path, capsys):
        run_reconciliation(Config(source_url=str(source_db), destination_url=str(dest_path)))
        clean_env.setenv("DESTINATION_DATABASE_URL", str(dest_path))

        list_records.main([])

        assert [item["id"] for item in json.loads(capsys.readouterr().out)] == [1, 2, 3]

    def test_missing_store_exits_one(self, clean_env, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            list_records.main(["--store", str(tmp_path / "absent.db")])

        assert exc_info.value.code == 1
        assert "Listing failed" in capsys.readouterr().err
