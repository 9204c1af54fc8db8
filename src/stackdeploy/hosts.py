# hosts.py
from __future__ import annotations

import socket

from .model import WILDCARD_HOST, StackDescriptor


def local_hostname() -> str:
    """Hostname of this machine, as used for runs_on matching."""
    try:
        name = socket.gethostname()
    except OSError:
        name = ""
    return name or "localhost"


def applies(stack: StackDescriptor, hostname: str) -> bool:
    """True if `stack` should run on `hostname` (exact match or "*")."""
    return WILDCARD_HOST in stack.runs_on or hostname in stack.runs_on
