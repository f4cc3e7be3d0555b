"""Console reporter using Rich library for CLI output.

Standard output carries the connection line (and, from the transfer,
the echoed response body); everything else goes to standard error so
piping the client's stdout stays clean.
"""

from rich.console import Console

from pipe_client.reporters.base import Reporter
from pipe_client.models import TransferResult


class ConsoleReporter(Reporter):
    """Rich-based console reporter.

    Args:
        quiet: If True, print only failure diagnostics
        verbose: If True, also print idle periods and a summary
    """

    def __init__(self, quiet: bool = False, verbose: bool = False):
        self.console = Console(legacy_windows=True)
        self.error_console = Console(stderr=True, legacy_windows=True)
        self.quiet = quiet
        self.verbose = verbose and not quiet

    def on_connect(self, url: str) -> None:
        if self.quiet:
            return
        self.console.print(f"connected to: {url}", markup=False, highlight=False, soft_wrap=True)

    def on_input_idle(self) -> None:
        if self.verbose:
            self.error_console.print("[dim]input idle, upload waiting[/dim]")

    def on_input_resumed(self) -> None:
        if self.verbose:
            self.error_console.print("[dim]input resumed[/dim]")

    def on_transfer_complete(self, result: TransferResult) -> None:
        """Print the failure diagnostic and, in verbose mode, a summary."""
        if not result.ok:
            self.error_console.print(
                f"upload failed: {result.error_message}",
                markup=False,
                highlight=False,
                soft_wrap=True,
            )

        if not self.verbose:
            return

        status = "[bold green]OK[/bold green]" if result.ok else "[bold red]FAILED[/bold red]"
        code = f" (HTTP {result.status_code})" if result.status_code is not None else ""
        self.error_console.print(
            f"{status}{code}: sent {result.bytes_sent} bytes, "
            f"received {result.bytes_received} bytes, "
            f"{result.pauses} pauses in {result.duration_seconds:.1f}s"
        )
