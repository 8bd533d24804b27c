"""
Runtime settings for the sync layer.

Values come from the environment (optionally seeded from a ``.env`` file)
and fall back to the production defaults below.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_API_URL = "https://carwashapp.shoppypie.in"
DEFAULT_DATA_DIR = "~/.washsync"


def load_environment() -> Path | None:
    """Load the first ``.env`` file found. Returns its path, if any."""
    env_locations = [
        Path.cwd() / ".env",
        Path(DEFAULT_DATA_DIR).expanduser() / ".env",
    ]
    for env_path in env_locations:
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """Connection and timeout settings shared by every resource."""

    api_url: str = DEFAULT_API_URL
    data_dir: str = DEFAULT_DATA_DIR

    # Timeout budgets (seconds)
    read_timeout: float = 10.0  # Listing endpoints
    mutation_timeout: float = 20.0  # Cancel, edit, mark-read
    booking_timeout: float = 30.0  # Booking creation

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()

    @property
    def database_path(self) -> Path:
        return self.data_path / "state.sqlite"

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> Settings:
        """Build settings from ``WASHSYNC_*`` environment variables."""
        if load_dotenv_file:
            load_environment()

        return cls(
            api_url=os.environ.get("WASHSYNC_API_URL", DEFAULT_API_URL).rstrip("/"),
            data_dir=os.environ.get("WASHSYNC_DATA_DIR", DEFAULT_DATA_DIR),
            read_timeout=_float_env("WASHSYNC_READ_TIMEOUT", cls.read_timeout),
            mutation_timeout=_float_env("WASHSYNC_MUTATION_TIMEOUT", cls.mutation_timeout),
            booking_timeout=_float_env("WASHSYNC_BOOKING_TIMEOUT", cls.booking_timeout),
        )
