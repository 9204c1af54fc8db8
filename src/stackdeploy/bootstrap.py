# bootstrap.py
from __future__ import annotations

import subprocess
from pathlib import Path

from .settings import COMPOSE_UP_ARGS, KDBX_PASSWORD_ENV, SECRETS_FILE_NAME

DEFAULT_IMAGE = "stack-deploy:latest"

COMPOSE_TEMPLATE = """\
services:
  stack-deploy:
    image: {image}
    restart: unless-stopped
    env_file: .env
    volumes:
      - /var/run/docker.sock:/var/run/docker.sock
      - ./repo:/app/repo
    command:
      - stack-deploy
      - --kdbx
      - /app/repo/{secrets_file}
      - run
      - --repo-dir
      - /app/repo
      - --repo-url
      - ${{GITHUB_URL}}
      - --poll-interval
      - ${{POLL_INTERVAL}}
"""


def render_compose(image: str = DEFAULT_IMAGE) -> str:
    return COMPOSE_TEMPLATE.format(image=image, secrets_file=SECRETS_FILE_NAME)


def render_env(git_url: str, git_username: str, github_token: str, db_password: str, poll_interval: int) -> str:
    return (
        f'GITHUB_URL="{git_url}"\n'
        f'GITHUB_USERNAME="{git_username}"\n'
        f'GITHUB_TOKEN="{github_token}"\n'
        f'{KDBX_PASSWORD_ENV}="{db_password}"\n'
        f'POLL_INTERVAL="{poll_interval}"\n'
    )


def write_bootstrap_files(
    project_dir: str | Path,
    *,
    git_url: str,
    git_username: str,
    github_token: str,
    db_password: str,
    poll_interval: int,
    image: str = DEFAULT_IMAGE,
) -> tuple[Path, Path]:
    """Write compose.yml and .env for the self-hosted deployer into `project_dir`."""
    project_dir = Path(project_dir)
    project_dir.mkdir(parents=True, exist_ok=True)

    compose_file = project_dir / "compose.yml"
    compose_file.write_text(render_compose(image), encoding="utf-8")

    env_file = project_dir / ".env"
    env_file.write_text(
        render_env(git_url, git_username, github_token, db_password, poll_interval),
        encoding="utf-8",
    )
    env_file.chmod(0o600)
    return compose_file, env_file


def start_deployer(project_dir: str | Path) -> None:
    """docker compose up in `project_dir`; raises CalledProcessError on failure."""
    subprocess.run(["docker", *COMPOSE_UP_ARGS], cwd=str(project_dir), check=True)
