# cli.py
from __future__ import annotations

import subprocess
import sys

import click

from .bootstrap import DEFAULT_IMAGE, start_deployer, write_bootstrap_files
from .errors import StackLoadError
from .loader import load_stacks
from .poller import Poller
from .runner import deploy_stacks, failed, stop_stacks
from .secrets import KeePassDB, SecretStoreError
from .settings import DEFAULT_POLL_INTERVAL, KDBX_PASSWORD_ENV, POLL_INTERVAL_ENV
from .ui.console import Console, get_console, set_console


def _fail(ctx: click.Context, exc: Exception, title: str, suggestion: str | None = None) -> None:
    console = get_console()
    console.print_error(title, str(exc), suggestion=suggestion)
    if console.debug:
        console.print_exception(exc)
    sys.exit(1)


def get_password(ctx: click.Context) -> str:
    """--password, then $STACK_KDBX_PASS, then a prompt if --interactive."""
    obj = ctx.obj
    if obj.get("password"):
        return obj["password"]
    if obj.get("interactive"):
        return click.prompt("Password", hide_input=True)
    get_console().print_error(
        "Missing database password",
        f"Missing --password and ${KDBX_PASSWORD_ENV} env var value and --interactive is not set",
    )
    sys.exit(1)


def open_kdbx(ctx: click.Context) -> KeePassDB:
    kdbx = ctx.obj.get("kdbx")
    if not kdbx:
        get_console().print_error(
            "No database specified",
            "no --kdbx file was specified",
            suggestion="Pass the KeePass database explicitly:\n  stack-deploy --kdbx secrets.kdbx ...",
        )
        sys.exit(1)
    password = get_password(ctx)
    try:
        return KeePassDB.open_with_password(kdbx, password)
    except SecretStoreError as e:
        _fail(ctx, e, "Failed to open database")
    except Exception as e:
        _fail(ctx, e, "Unexpected error opening database")


def _load(ctx: click.Context, root: str, files: tuple[str, ...]):
    try:
        return load_stacks(root, list(files), hostname=ctx.obj.get("hostname"))
    except StackLoadError as e:
        _fail(ctx, e, "Failed to load stacks")
    except Exception as e:
        _fail(ctx, e, "Unexpected error loading stacks")


@click.group()
@click.option("--kdbx", default=None, help="Path to a KeePass .kdbx file containing secrets")
@click.option(
    "--password",
    default=None,
    envvar=KDBX_PASSWORD_ENV,
    help=f"Password that can be used to decrypt the kdbx file (or ${KDBX_PASSWORD_ENV})",
)
@click.option("--interactive", is_flag=True, default=False, help="Prompt for missing information")
@click.option("--hostname", default=None, help="Host name used for runs_on matching (defaults to this machine)")
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, kdbx, password, interactive, hostname, debug):
    """stack-deploy: deploy docker compose stacks in dependency order."""
    set_console(Console(debug=debug))
    ctx.ensure_object(dict)
    ctx.obj.update(
        kdbx=kdbx,
        password=password,
        interactive=interactive,
        hostname=hostname,
        debug=debug,
    )


@cli.command("get-secret")
@click.argument("path")
@click.pass_context
def get_secret(ctx, path):
    """Print the value of a secret, e.g. Database/group/entry/Password."""
    db = open_kdbx(ctx)
    value = db.resolve_value(path)
    if value is None:
        get_console().print_error("Secret not found", f"{path} not found in {ctx.obj['kdbx']}")
        sys.exit(1)
    click.echo(value)


_root_option = click.option(
    "--root",
    default=".",
    show_default=True,
    help="Path to the root of the project; searched recursively for stack-deploy.toml files",
)
_file_option = click.option(
    "--file",
    "files",
    multiple=True,
    type=click.Path(dir_okay=False),
    help="Instead of searching for a deploy file, specify its path. Can be used multiple times",
)


@cli.command("stack-deploy")
@_root_option
@_file_option
@click.pass_context
def stack_deploy(ctx, root, files):
    """Deploy stacks, dependencies first."""
    console = get_console()
    db = open_kdbx(ctx)
    stacks = _load(ctx, root, files)
    console.print_plan("deploy", [s.name for s in stacks])

    try:
        results = deploy_stacks(db, stacks)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        _fail(ctx, e, "Deploy failed")

    console.print_results(results)
    if failed(results):
        sys.exit(1)


@cli.command("stack-stop")
@_root_option
@_file_option
@click.pass_context
def stack_stop(ctx, root, files):
    """Stop stacks, dependents first."""
    console = get_console()
    stacks = _load(ctx, root, files)
    console.print_plan("stop", [s.name for s in reversed(stacks)])

    try:
        results = stop_stacks(stacks)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        _fail(ctx, e, "Stop failed")

    console.print_results(results)
    if failed(results):
        sys.exit(1)


@cli.command()
@click.option("--repo-dir", required=True, help="Local path into which the repo should be cloned")
@click.option("--repo-url", default=None, help="URL from which the repo should be cloned if provided")
@click.option(
    "--poll-interval",
    default=DEFAULT_POLL_INTERVAL,
    envvar=POLL_INTERVAL_ENV,
    type=click.IntRange(min=0),
    show_default=True,
    help=f"How many seconds to wait between checking the repo for updates. 0 to disable. (or ${POLL_INTERVAL_ENV})",
)
@click.pass_context
def run(ctx, repo_dir, repo_url, poll_interval):
    """Keep a deployment repo checked out and deploy it whenever it changes."""
    poller = Poller(
        repo_dir,
        get_password(ctx),
        repo_url=repo_url,
        poll_interval=poll_interval,
        hostname=ctx.obj.get("hostname"),
    )
    poller.install_signal_handlers()
    try:
        poller.run()
    except subprocess.CalledProcessError as e:
        _fail(ctx, e, "Failed to update repository")
    except RuntimeError as e:
        _fail(ctx, e, "Missing configuration", suggestion="Set GITHUB_USERNAME and GITHUB_TOKEN")
    except Exception as e:
        _fail(ctx, e, "Poller failed")


@cli.command()
@click.option("--project-dir", required=True, help="Where to place the compose.yml and .env")
@click.option("--git-url", required=True, help="The repo that should be cloned")
@click.option("--git-username", default="oauth2", show_default=True, help="The git username to use")
@click.option(
    "--poll-interval",
    default=DEFAULT_POLL_INTERVAL,
    type=click.IntRange(min=0),
    show_default=True,
    help="How many seconds between git pulls",
)
@click.option("--image", default=DEFAULT_IMAGE, show_default=True, help="Image that runs the deployer")
@click.pass_context
def bootstrap(ctx, project_dir, git_url, git_username, poll_interval, image):
    """Install a self-updating deployer into PROJECT_DIR and start it."""
    console = get_console()
    github_token = click.prompt("Github Token", hide_input=True)
    db_password = click.prompt("KeePass Passphrase", hide_input=True)

    try:
        compose_file, env_file = write_bootstrap_files(
            project_dir,
            git_url=git_url,
            git_username=git_username,
            github_token=github_token,
            db_password=db_password,
            poll_interval=poll_interval,
            image=image,
        )
        console.print_info(f"Wrote {compose_file} and {env_file}")
        start_deployer(project_dir)
    except Exception as e:
        _fail(ctx, e, "Bootstrap failed")


if __name__ == "__main__":
    cli()
