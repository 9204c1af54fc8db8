"""Console output formatting utilities for stack-deploy."""

from __future__ import annotations

import sys
from typing import Iterable, Optional

from ..model import StackResult


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show debug messages and stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_hostname(self, hostname: str) -> None:
        print(f"my hostname is {hostname}")

    def print_plan(self, action: str, names: Iterable[str]) -> None:
        """Print the ordered list of stacks about to be deployed or stopped."""
        names = list(names)
        self.print_header(f"{action.upper()} PLAN ({len(names)} stacks)")
        for idx, name in enumerate(names, start=1):
            print(f"  {idx}. {name}")

    def print_stack_skipped(self, path: str, hostname: str, runs_on: Iterable[str]) -> None:
        """Print a manifest that is not meant for this host."""
        print(
            f"Skipping {path} because my hostname {hostname} "
            f"is not in runs_on: {sorted(runs_on)}"
        )

    def print_stack_start(self, action: str, name: str) -> None:
        print(f"\n{action.upper()}: {name}")

    def print_stack_result(self, result: StackResult) -> None:
        if result.ok:
            print(f"STATUS: success ({result.origin})")
        else:
            print(f"STATUS: failed ({result.origin})")
            self.print_failure(result.name, result.error or "Unknown error")

    def print_failure(self, name: str, reason: str) -> None:
        """Print a stack failure; only the first line unless in debug mode."""
        print(f"STACK FAILED: {name}", file=sys.stderr)
        if self.debug:
            print(f"Error details: {reason}", file=sys.stderr)
        else:
            print(f"Error: {reason.splitlines()[0] if reason else 'Unknown error'}", file=sys.stderr)

    def print_results(self, results: list[StackResult]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for result in results:
            status_display = "SUCCESS" if result.ok else result.status.upper()
            print(f"  {result.name}: {status_display}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_poller_started(self, repo_dir: str, repo_url: str | None, poll_interval: int) -> None:
        """Print poll loop start information."""
        print("\nPOLLER STARTED")
        print(f"Repo dir: {repo_dir}")
        print(f"Repo URL: {repo_url or '(none, deploying local checkout)'}")
        if poll_interval:
            print(f"Polling every: {poll_interval}s")
        else:
            print("Polling: disabled (single run)")
        print()

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        print(f"WARNING: {message}", file=sys.stderr)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
