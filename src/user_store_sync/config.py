"""Configuration loading for the user store reconciliation tool."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_LOG_LEVEL = "INFO"
SOURCE_DB_FILENAME = "db.sqlite"


@dataclass
class Config:
    """Connection descriptors for the source and destination stores."""

    source_url: str
    destination_url: str
    log_level: str = DEFAULT_LOG_LEVEL


def _load_env(env_file: Optional[str] = None):
    # Precedence: explicit file, then .env in the working directory, then process env
    if env_file:
        load_dotenv(env_file)
    elif Path(".env").exists():
        load_dotenv(".env")


def _default_source_url() -> Optional[str]:
    """Source database inside the mounted volume, where the read service keeps it."""
    volume_path = os.getenv("RAILWAY_VOLUME_MOUNT_PATH")
    if not volume_path:
        return None
    return str(Path(volume_path) / SOURCE_DB_FILENAME)


def load_config(
    env_file: Optional[str] = None,
    source_url: Optional[str] = None,
    destination_url: Optional[str] = None,
) -> Config:
    """
    Load configuration from environment variables.

    Environment variable loading precedence:
    1. If env_file provided via CLI, load from that path
    2. Otherwise, check for .env in current working directory
    3. Otherwise, use system environment variables

    Variables:
        SOURCE_DATABASE_URL: Source store descriptor
            (falls back to $RAILWAY_VOLUME_MOUNT_PATH/db.sqlite)
        DESTINATION_DATABASE_URL: Destination store descriptor
        LOG_LEVEL: Console log level (default INFO)

    Args:
        env_file: Optional path to .env file (CLI parameter)
        source_url: Optional source descriptor overriding the environment
        destination_url: Optional destination descriptor overriding the environment

    Returns:
        Config object with loaded settings

    Raises:
        ValueError: If required configuration is missing
    """
    _load_env(env_file)

    source = source_url or os.getenv("SOURCE_DATABASE_URL") or _default_source_url()
    destination = destination_url or os.getenv("DESTINATION_DATABASE_URL")

    missing = []
    if not source:
        missing.append("SOURCE_DATABASE_URL (or RAILWAY_VOLUME_MOUNT_PATH)")
    if not destination:
        missing.append("DESTINATION_DATABASE_URL")
    if missing:
        msg = f"Missing required environment variables: {', '.join(missing)}"
        raise ValueError(msg)

    log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    return Config(source_url=source, destination_url=destination, log_level=log_level)


def load_store_url(
    env_file: Optional[str] = None,
    store_url: Optional[str] = None,
    role: str = "destination",
) -> str:
    """
    Resolve a single store descriptor for the init/list tools.

    Args:
        env_file: Optional path to .env file
        store_url: Descriptor given on the command line (wins if set)
        role: 'source' or 'destination', selects the environment variable

    Raises:
        ValueError: If no descriptor can be resolved or the role is unknown
    """
    if store_url:
        return store_url

    _load_env(env_file)
    if role == "source":
        url = os.getenv("SOURCE_DATABASE_URL") or _default_source_url()
        variable = "SOURCE_DATABASE_URL (or RAILWAY_VOLUME_MOUNT_PATH)"
    elif role == "destination":
        url = os.getenv("DESTINATION_DATABASE_URL")
        variable = "DESTINATION_DATABASE_URL"
    else:
        msg = f"Unknown store role: {role}"
        raise ValueError(msg)

    if not url:
        msg = f"Missing required environment variables: {variable}"
        raise ValueError(msg)
    return url
