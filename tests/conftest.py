"""Shared pytest fixtures for all tests."""

import logging

import pytest

from tests.helpers.sqlite_db import create_sqlite_db

ENV_VARS = (
    "SOURCE_DATABASE_URL",
    "DESTINATION_DATABASE_URL",
    "RAILWAY_VOLUME_MOUNT_PATH",
    "LOG_LEVEL",
)


@pytest.fixture
def source_db(tmp_path):
    """Source database holding the three default users."""
    return create_sqlite_db(
        tmp_path / "source.db",
        [(1, "Davida123"), (2, "Brianabc"), (3, "Jeff")],
    )


@pytest.fixture
def empty_source_db(tmp_path):
    """Source database with an empty users table."""
    return create_sqlite_db(tmp_path / "empty_source.db")


@pytest.fixture
def dest_path(tmp_path):
    """Path for a destination database that does not exist yet."""
    return tmp_path / "dest.db"


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """
    Isolate configuration tests from the process environment.

    Variables are set then deleted through monkeypatch so anything load_dotenv
    writes during the test is removed at teardown. Runs from tmp_path so no
    stray .env is picked up.
    """
    for name in ENV_VARS:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture(autouse=True)
def reset_console_logger():
    """Drop handlers the CLI attaches, they hold per-test capture streams."""
    yield
    console_logger = logging.getLogger("user_store_sync")
    for handler in list(console_logger.handlers):
        console_logger.removeHandler(handler)
