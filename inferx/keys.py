"""API key loading for InferX.

Keys are read from env files with this priority:
  1. Environment variables (highest, already set in shell)
  2. ~/.inferx/keys.env
  3. .env in current directory
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

INFERX_HOME = Path.home() / ".inferx"
KEYS_FILE = INFERX_HOME / "keys.env"

# Provider key definitions: (env_var, display_name)
PROVIDER_KEYS = [
    ("GEMINI_API_KEY", "Google (Gemini)"),
    ("OPENAI_API_KEY", "OpenAI-compatible"),
    ("HF_TOKEN", "HuggingFace"),
]


def load_keys_env(files: list[Path] | None = None) -> None:
    """Load API keys from ~/.inferx/keys.env and .env into os.environ.

    Existing env vars are NOT overwritten, and earlier files win over
    later ones.
    """
    for env_file in files if files is not None else [KEYS_FILE, Path.cwd() / ".env"]:
        if env_file.is_file():
            _load_env_file(env_file)


def _load_env_file(path: Path) -> None:
    """Parse a simple KEY=VALUE .env file and set vars that aren't already set."""
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            if key.startswith("export "):
                key = key[len("export "):].strip()
            value = value.strip().strip("'\"")
            if key and not os.environ.get(key):
                os.environ[key] = value
                logger.debug("Loaded %s from %s", key, path)
    except OSError:
        logger.debug("Could not read %s", path)


def get_configured_keys() -> dict[str, bool]:
    """Return env_var -> whether a value is set, for every known provider key."""
    return {env_var: bool(os.environ.get(env_var)) for env_var, _ in PROVIDER_KEYS}


def resolve_api_key(env_var: str) -> str | None:
    """Value of ``env_var``, or None when it is unset or empty."""
    if not env_var:
        return None
    return os.environ.get(env_var) or None
