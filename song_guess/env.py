"""Environment-variable helpers for credentials and optional overrides."""

import os
from pathlib import Path


def load_env_file(path: Path = Path(".env")) -> None:
    """Load simple KEY=VALUE pairs from a .env file into process env.

    Variables already set in the environment win over the file.
    """
    if not path.exists():
        return

    with path.open("r", encoding="utf-8") as env_file:
        for raw_line in env_file:
            line = raw_line.strip()
            # Skip comments, blank lines, and malformed rows.
            if not line or line.startswith("#") or "=" not in line:
                continue

            # Split once so values containing '=' are preserved.
            key, value = line.split("=", 1)
            os.environ.setdefault(key.strip(), value.strip().strip("'\""))


def get_required_env(name: str) -> str:
    """Fetch a required environment variable or raise a clear error."""
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def get_env_int(name: str, default: int) -> int:
    """Read an optional positive integer override, falling back on bad input."""
    raw_value = os.getenv(name, "").strip()
    if not raw_value.isdigit() or int(raw_value) <= 0:
        return default
    return int(raw_value)
