# poller.py
from __future__ import annotations

import signal
import time
from typing import Callable, List, Optional

from .errors import StackLoadError
from .git_facts.git import clone_or_update
from .model import StackResult
from .runner import run_deploy
from .secrets import SecretStoreError
from .ui.console import get_console


class Poller:
    """Keeps a deployment repo checked out and redeploys it when it changes."""

    def __init__(
        self,
        repo_dir: str,
        password: str,
        repo_url: Optional[str] = None,
        poll_interval: int = 300,
        hostname: Optional[str] = None,
        deploy_fn: Optional[Callable[..., List[StackResult]]] = None,
    ):
        """
        Initialize poller.

        Args:
            repo_dir: Local path of the checkout
            password: Passphrase for the repo's secrets database
            repo_url: Where to clone from; without it the checkout is used as-is
            poll_interval: Seconds between checks, 0 to run once
            hostname: Override for runs_on matching
        """
        self.repo_dir = repo_dir
        self.password = password
        self.repo_url = repo_url
        self.poll_interval = poll_interval
        self.hostname = hostname
        self.deploy_fn = deploy_fn or run_deploy
        self.running = True
        self._first_run = True

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        get_console().print_info(f"\nReceived signal {signum}, shutting down gracefully...")
        self.running = False

    def _deploy(self) -> None:
        console = get_console()
        try:
            results = self.deploy_fn(self.repo_dir, self.password, hostname=self.hostname)
            console.print_results(results)
        except (StackLoadError, SecretStoreError) as e:
            console.print_error("Error running deploy", str(e))
        except Exception as e:
            console.print_exception(e)

    def tick(self) -> None:
        """One iteration: update the checkout if needed, deploy if it changed."""
        console = get_console()
        if self.repo_url:
            status = clone_or_update(self.repo_url, self.repo_dir)
            console.print_debug(f"hash is {status}")
            if status.updated or self._first_run:
                console.print_info(f"Running a deploy {status}")
                self._deploy()
        else:
            console.print_info("Running a deploy")
            self._deploy()
        self._first_run = False

    def run(self) -> None:
        """Run the poll loop until stopped, or once if polling is disabled."""
        console = get_console()
        console.print_poller_started(self.repo_dir, self.repo_url, self.poll_interval)

        while self.running:
            self.tick()

            # Disable polling if the interval is 0
            if self.poll_interval == 0:
                break
            time.sleep(self.poll_interval)

        console.print_info("Poller stopped.")
