"""
Environment loading for Node Medic.

- Loads .env from the working directory (then the project root) when present.
  Variables already set in the process environment are never overridden.
- Maps setting keys (eth-url) to environment variable names (ETH_URL).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

# Project root: config is node_medic/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent


def load_medic_env() -> None:
    """Load .env from cwd and project root. Safe to call multiple times."""
    for path in (Path.cwd() / ".env", _ROOT / ".env"):
        if path.is_file():
            load_dotenv(path, override=False)


def env_name(key: str) -> str:
    """eth-url -> ETH_URL."""
    return key.replace("-", "_").upper()


def read_env(keys: list[str], environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return {key: value} for every key whose env variable is set and non-blank."""
    source = os.environ if environ is None else environ
    found: dict[str, str] = {}
    for key in keys:
        raw = (source.get(env_name(key)) or "").strip()
        if raw:
            found[key] = raw
    return found
