# loader.py
from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import ValidationError

from .dag import sequence_stacks
from .errors import ManifestError
from .hosts import applies, local_hostname
from .model import StackDescriptor, StackManifest
from .settings import MANIFEST_NAME
from .ui.console import get_console


# ----------------------------------------------------------------------
# Discovery + parsing
# ----------------------------------------------------------------------

def find_manifests(root: str | Path, name: str = MANIFEST_NAME) -> List[Path]:
    """Recursively find stack manifests below `root`, sorted by path."""
    return sorted(Path(root).glob(f"**/{name}"))


def parse_manifest(path: str | Path) -> StackDescriptor:
    """
    Read and validate a single stack-deploy.toml.

    Raises:
        ManifestError: file unreadable, invalid TOML, or schema violation
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(path, f"failed to read: {e}") from e

    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(path, f"failed to parse as toml: {e}") from e

    try:
        manifest = StackManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError(path, f"invalid stack manifest:\n{e}") from e

    return StackDescriptor.from_manifest(manifest, path)


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def filter_for_host(stacks: Iterable[StackDescriptor], hostname: str) -> List[StackDescriptor]:
    console = get_console()
    accepted: List[StackDescriptor] = []
    for stack in stacks:
        if applies(stack, hostname):
            accepted.append(stack)
        else:
            console.print_stack_skipped(str(stack.origin), hostname, stack.runs_on)
    return accepted


def load_stacks(
    root: str | Path = ".",
    files: Optional[Iterable[str | Path]] = None,
    *,
    hostname: Optional[str] = None,
) -> List[StackDescriptor]:
    """
    Load stacks from `files`, or from every manifest below `root` when no
    files are given.

    The result is in dependency order: stacks are placed after the stacks
    they depend on. Reverse it to get the stop order.
    """
    console = get_console()
    files = [Path(f) for f in (files or [])]
    files_specified = bool(files)
    paths = files if files_specified else find_manifests(root)

    if hostname is None:
        hostname = local_hostname()
    console.print_hostname(hostname)

    stacks = []
    for path in paths:
        stack = parse_manifest(path)
        console.print_debug(f"{stack}")
        stacks.append(stack)

    accepted = filter_for_host(stacks, hostname)
    return sequence_stacks(accepted, files_specified=files_specified)
