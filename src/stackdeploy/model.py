# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, Field

WILDCARD_HOST = "*"


class StackManifest(BaseModel):
    """Schema of a single stack-deploy.toml file. Unknown keys are rejected."""
    model_config = ConfigDict(extra="forbid")

    # Name of this stack
    name: str
    # Stacks that must be deployed before this one
    depends_on: list[str] = Field(default_factory=list)
    # Env var name -> secret path in the KeePass database
    secret_env: dict[str, str] = Field(default_factory=dict)
    # Host names on which to run this stack ("*" = any host)
    runs_on: list[str]


@dataclass(frozen=True)
class StackDescriptor:
    """
    One parsed stack manifest.

    `origin` is the manifest path; its parent directory is where
    docker compose is run for this stack.
    """
    name: str
    runs_on: FrozenSet[str]
    origin: Path
    depends_on: Tuple[str, ...] = ()
    secret_env: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        # read-only view over a private copy
        object.__setattr__(self, "secret_env", MappingProxyType(dict(self.secret_env)))

    @classmethod
    def from_manifest(cls, manifest: StackManifest, origin: str | Path) -> StackDescriptor:
        return cls(
            name=manifest.name,
            runs_on=frozenset(manifest.runs_on),
            origin=Path(origin),
            depends_on=tuple(manifest.depends_on),
            secret_env=manifest.secret_env,
        )

    @property
    def directory(self) -> Path:
        return self.origin.parent


@dataclass(frozen=True)
class StackResult:
    """Outcome of deploying or stopping one stack."""
    name: str
    origin: Path
    status: str  # "ok" | "failed"
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"
