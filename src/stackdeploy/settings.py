# settings.py
from __future__ import annotations

import os

MANIFEST_NAME = os.environ.get("STACK_MANIFEST_NAME", "stack-deploy.toml")
SECRETS_FILE_NAME = os.environ.get("STACK_SECRETS_FILE", ".secrets.kdbx")
KDBX_PASSWORD_ENV = "STACK_KDBX_PASS"
POLL_INTERVAL_ENV = "POLL_INTERVAL"
DEFAULT_POLL_INTERVAL = 300

COMPOSE_UP_ARGS = ["compose", "up", "--remove-orphans", "--detach", "--wait"]
COMPOSE_DOWN_ARGS = ["compose", "down", "--remove-orphans"]


def getenv(name: str) -> str:
    """Read a required environment variable."""
    try:
        return os.environ[name]
    except KeyError:
        raise RuntimeError(f"env var {name} not found") from None
