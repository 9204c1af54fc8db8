# git.py
# Small, focused wrapper around the Git CLI.
# The poll loop uses this to keep a local checkout of the deployment repo
# in sync and to tell whether anything changed since the last deploy.

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ..settings import getenv
from ..ui.console import get_console

# Hands the token to git from the environment at request time, so it is
# never written into the clone's config.
CREDENTIAL_HELPER = '!f(){ test "$1" = get && echo "password=${GITHUB_TOKEN}"; }; f'


def _git(args: List[str], cwd: Optional[str | Path] = None, env: Optional[Dict[str, str]] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    Args:
        args: List of git arguments (e.g. ["rev-parse", "HEAD"])
        cwd: Optional working directory in which to run the git command.
        env: Extra environment variables for the git process.

    Returns:
        Stdout from the git command with surrounding whitespace removed.
    """
    full_env = None
    if env:
        full_env = os.environ.copy()
        full_env.update(env)

    out = subprocess.check_output(
        ["git", *args],
        cwd=None if cwd is None else str(cwd),
        env=full_env,
        text=True,
    )
    return out.strip()


def head_sha(repo_dir: str | Path) -> str:
    """Return the full SHA hash of the HEAD commit of `repo_dir`."""
    return _git(["rev-parse", "HEAD"], cwd=repo_dir)


@dataclass(frozen=True)
class RepoUpdateStatus:
    kind: str  # "cloned" | "updated" | "same"
    sha: str

    @property
    def updated(self) -> bool:
        return self.kind in ("cloned", "updated")


def clone_or_update(repo_url: str, repo_dir: str | Path) -> RepoUpdateStatus:
    """
    Make `repo_dir` an up to date checkout of `repo_url`.

    An existing checkout is updated with `pull --rebase`; anything else at
    `repo_dir` is removed and the repo is cloned fresh. Credentials come
    from $GITHUB_USERNAME and $GITHUB_TOKEN.
    """
    console = get_console()
    repo_dir = Path(repo_dir)
    dot_git = repo_dir / ".git"

    username = getenv("GITHUB_USERNAME")
    token = getenv("GITHUB_TOKEN")
    auth = [
        "-c", f"credential.username={username}",
        "-c", f"credential.helper={CREDENTIAL_HELPER}",
    ]
    env = {"GITHUB_TOKEN": token}

    hash_before: Optional[str] = None
    if dot_git.is_dir():
        try:
            hash_before = head_sha(repo_dir)
        except subprocess.CalledProcessError:
            hash_before = None
        _git([*auth, "pull", "--rebase"], cwd=repo_dir, env=env)
    else:
        console.print_debug(f"{dot_git} is not a directory, cloning fresh")
        if repo_dir.exists():
            try:
                shutil.rmtree(repo_dir)
            except OSError as e:
                console.print_warning(f"Error removing {repo_dir}: {e}")
        _git([*auth, "clone", repo_url, str(repo_dir)], env=env)

    hash_after = head_sha(repo_dir)
    if hash_before is None:
        return RepoUpdateStatus("cloned", hash_after)
    if hash_before == hash_after:
        return RepoUpdateStatus("same", hash_after)
    return RepoUpdateStatus("updated", hash_after)
