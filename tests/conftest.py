from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from stackdeploy.model import StackDescriptor
from stackdeploy.secrets import Entry, Group
from stackdeploy.ui.console import Console, set_console


@pytest.fixture(autouse=True)
def _fresh_console():
    set_console(Console())
    yield
    set_console(Console())


@pytest.fixture
def write_manifest(tmp_path):
    """write_manifest("web", 'name = "web"...') -> path of web/stack-deploy.toml"""
    def _write(subdir: str, body: str) -> Path:
        stack_dir = tmp_path / subdir
        stack_dir.mkdir(parents=True, exist_ok=True)
        path = stack_dir / "stack-deploy.toml"
        path.write_text(dedent(body).lstrip(), encoding="utf-8")
        return path
    return _write


def make_stack(name, depends_on=(), runs_on=("*",), secret_env=None, origin=None) -> StackDescriptor:
    return StackDescriptor(
        name=name,
        runs_on=frozenset(runs_on),
        origin=Path(origin or f"/stacks/{name}/stack-deploy.toml"),
        depends_on=tuple(depends_on),
        secret_env=dict(secret_env or {}),
    )


@pytest.fixture
def vault():
    return Group(
        "Vault",
        (
            Group(
                "svc",
                (
                    Entry("creds", {"Title": "creds", "token": "abc123", "Password": "hunter2"}),
                ),
            ),
            Entry("top", {"Title": "top", "UserName": "admin"}),
        ),
    )
