# runner.py
from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from .dag import reverse_order
from .errors import ComposeFailure, SecretsMissing
from .loader import load_stacks
from .model import StackDescriptor, StackResult
from .secrets import KeePassDB
from .settings import COMPOSE_DOWN_ARGS, COMPOSE_UP_ARGS, SECRETS_FILE_NAME
from .ui.console import get_console


class SecretSource(Protocol):
    def resolve_value(self, path: str) -> Optional[str]: ...


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def resolve_secret_env(db: SecretSource, stack: StackDescriptor) -> Dict[str, str]:
    """
    Resolve every secret_env entry of `stack`.

    Each miss is reported on its own; if any were missing the stack
    cannot be deployed and SecretsMissing is raised.
    """
    console = get_console()
    env: Dict[str, str] = {}
    missing: List[str] = []

    for var, path in sorted(stack.secret_env.items()):
        value = db.resolve_value(path)
        if value is None:
            console.print_error(
                "Secret not found",
                f"secret_env {var}: {path} was not found in database",
            )
            missing.append(var)
        else:
            env[var] = value

    if missing:
        raise SecretsMissing(stack.name, missing)
    return env


def _run_compose(stack: StackDescriptor, args: Sequence[str], extra_env: Optional[Mapping[str, str]] = None) -> None:
    cwd = stack.directory
    if not cwd.is_dir():
        raise FileNotFoundError(f"[{stack.name}] directory not found: {cwd}")

    env = os.environ.copy()
    env.update(extra_env or {})

    cmd = ["docker", *args]
    proc = subprocess.run(cmd, cwd=str(cwd), env=env)

    if proc.returncode != 0:
        raise ComposeFailure(
            stack=stack.name,
            cmd=" ".join(cmd),
            exit_code=proc.returncode,
        )


def compose_up(db: SecretSource, stack: StackDescriptor) -> None:
    env = resolve_secret_env(db, stack)
    _run_compose(stack, COMPOSE_UP_ARGS, env)


def compose_down(stack: StackDescriptor) -> None:
    _run_compose(stack, COMPOSE_DOWN_ARGS)


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def _run_each(action: str, stacks: Sequence[StackDescriptor], fn) -> List[StackResult]:
    """
    Run `fn(stack)` for every stack in the given order.

    A failing stack is recorded and the next one is still attempted;
    dependents of a failed stack are not skipped.
    """
    console = get_console()
    results: List[StackResult] = []

    for stack in stacks:
        console.print_stack_start(action, stack.name)
        try:
            fn(stack)
            result = StackResult(stack.name, stack.origin, "ok")
        except (SecretsMissing, ComposeFailure, OSError) as e:
            result = StackResult(stack.name, stack.origin, "failed", error=str(e))
        console.print_stack_result(result)
        results.append(result)

    return results


def deploy_stacks(db: SecretSource, stacks: Sequence[StackDescriptor]) -> List[StackResult]:
    """Bring stacks up in launch order (as returned by load_stacks)."""
    return _run_each("deploy", stacks, lambda stack: compose_up(db, stack))


def stop_stacks(stacks: Sequence[StackDescriptor]) -> List[StackResult]:
    """Bring stacks down in reverse launch order."""
    by_name = {stack.name: stack for stack in stacks}
    ordered = [by_name[name] for name in reverse_order([s.name for s in stacks])]
    return _run_each("stop", ordered, compose_down)


def failed(results: Sequence[StackResult]) -> bool:
    return any(not r.ok for r in results)


def run_deploy(repo_dir: str | Path, password: str, *, hostname: Optional[str] = None) -> List[StackResult]:
    """Deploy every stack in a checked-out repo, using its bundled secrets file."""
    db = KeePassDB.open_with_password(Path(repo_dir) / SECRETS_FILE_NAME, password)
    stacks = load_stacks(repo_dir, hostname=hostname)
    get_console().print_plan("deploy", [s.name for s in stacks])
    return deploy_stacks(db, stacks)
