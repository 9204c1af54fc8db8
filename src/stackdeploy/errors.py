# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


# ----------------------------------------------------------------------
# Structural errors: abort the whole load, nothing is deployed or stopped
# ----------------------------------------------------------------------

class StackLoadError(Exception):
    """Base class for errors that prevent the stack set from being loaded."""


@dataclass
class ManifestError(StackLoadError):
    path: Path
    reason: str

    def __str__(self) -> str:
        return f"failed to load {self.path}: {self.reason}"


@dataclass
class DuplicateStackError(StackLoadError):
    name: str
    first: Path
    second: Path

    def __str__(self) -> str:
        return (
            f"multiple stacks have the same name {self.name}: "
            f"{self.first} and {self.second}"
        )


@dataclass
class MissingDependencyError(StackLoadError):
    dependent: str
    dependency: str
    files_specified: bool

    def __str__(self) -> str:
        if self.files_specified:
            return (
                f"{self.dependent} depends on {self.dependency}, but {self.dependency} "
                f"is not present in any of the specified stack deploy files"
            )
        return (
            f"{self.dependent} depends on {self.dependency}, but {self.dependency} "
            f"is not present in any stack deploy file"
        )


@dataclass
class CycleError(StackLoadError):
    nodes: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Dependency cycle detected for {', '.join(self.nodes)}"


# ----------------------------------------------------------------------
# Per-stack runtime errors: recorded, the run continues with the next stack
# ----------------------------------------------------------------------

@dataclass
class SecretsMissing(Exception):
    stack: str
    missing: List[str]

    def __str__(self) -> str:
        return (
            f"Cannot deploy {self.stack}: secret_env "
            f"{', '.join(self.missing)} not found in database"
        )


@dataclass
class ComposeFailure(Exception):
    stack: str
    cmd: str
    exit_code: int

    def __str__(self) -> str:
        return f"[{self.stack}] '{self.cmd}' failed (exit={self.exit_code})"
