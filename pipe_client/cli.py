"""Command-line interface for the pipe client.

Streams standard input to a URL as the body of a PUT request:

    tail -f app.log | pipe-client https://pipeto.me/<code>
"""

import argparse
import signal
import sys
import threading
from typing import Any, Optional

import httpx

from pipe_client.config import ClientConfig, ConfigError, load_config
from pipe_client.flow import FlowController
from pipe_client.models import TransferResult, TransferState
from pipe_client.reader import NonBlockingReader, SetupError
from pipe_client.reporters import ConsoleReporter, JsonReporter, Reporter
from pipe_client.transfer import HttpTransfer, build_http_client

USAGE = "usage: pipe-client https://pipeto.me/<code>"

# Returned for usage and setup errors
EXIT_USAGE = -1

INTERRUPTED_MESSAGE = "Transfer interrupted"


class UsageError(Exception):
    """Raised for missing or malformed command-line arguments."""

    pass


class _ArgumentParser(argparse.ArgumentParser):
    """Parser that raises instead of printing argparse's own usage."""

    def error(self, message: str) -> None:
        raise UsageError(message)


class CompositeReporter(Reporter):
    """Reporter that delegates to multiple reporters."""

    def __init__(self, reporters: list[Reporter]):
        self._reporters = reporters

    def on_connect(self, url: str) -> None:
        for reporter in self._reporters:
            reporter.on_connect(url)

    def on_input_idle(self) -> None:
        for reporter in self._reporters:
            reporter.on_input_idle()

    def on_input_resumed(self) -> None:
        for reporter in self._reporters:
            reporter.on_input_resumed()

    def on_transfer_complete(self, result: TransferResult) -> None:
        for reporter in self._reporters:
            reporter.on_transfer_complete(result)


class InterruptCanceller:
    """Context manager turning the first Ctrl+C into a transfer abort.

    The first SIGINT cancels the controller, which aborts the transfer on
    its next progress tick. A second SIGINT raises KeyboardInterrupt.
    """

    def __init__(self, controller: FlowController):
        self._controller = controller
        self._original_handler: Any = None

    def __enter__(self) -> "InterruptCanceller":
        if threading.current_thread() is not threading.main_thread():
            return self

        def signal_handler(signum: int, frame: Any) -> None:
            if self._controller.cancelled:
                raise KeyboardInterrupt
            self._controller.cancel()

        self._original_handler = signal.signal(signal.SIGINT, signal_handler)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self._original_handler is not None:
            signal.signal(signal.SIGINT, self._original_handler)
            self._original_handler = None
        return False


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        UsageError: On unknown options or malformed values.
    """
    parser = _ArgumentParser(
        prog="pipe-client",
        description="Stream standard input to a URL with an HTTP PUT",
        add_help=False,
    )

    parser.add_argument("url", nargs="?", help="Destination URL")

    parser.add_argument("-h", "--help", action="store_true")

    parser.add_argument(
        "-c", "--config",
        metavar="PATH",
        help="Path to a JSON configuration file",
    )

    parser.add_argument(
        "-j", "--json-output",
        metavar="PATH",
        help="Write a JSON transfer summary to file",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Print only failure diagnostics",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Report idle periods and a final summary",
    )

    parser.add_argument(
        "--fail",
        action="store_true",
        help="Exit with status 1 when the transfer fails",
    )

    parser.add_argument(
        "--no-echo",
        action="store_true",
        help="Discard the response body instead of writing it to stdout",
    )

    return parser.parse_args(argv)


def validate_url(url: str) -> None:
    """Reject destinations that cannot be uploaded to.

    Raises:
        UsageError: If the URL is malformed or not http(s).
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise UsageError(f"invalid URL: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise UsageError(f"invalid URL: {url}")


def create_reporters(args: argparse.Namespace) -> list[Reporter]:
    """Create reporters based on command-line arguments."""
    reporters: list[Reporter] = [ConsoleReporter(quiet=args.quiet, verbose=args.verbose)]

    if args.json_output:
        reporters.append(JsonReporter(output_path=args.json_output))

    return reporters


def run_transfer(
    url: str,
    config: ClientConfig,
    reader: NonBlockingReader,
    reporter: Reporter,
) -> TransferResult:
    """Wire reader, flow controller and transfer together and run the upload."""
    controller = FlowController(reader, TransferState(), reporter)
    output = getattr(sys.stdout, "buffer", None) if config.echo_response else None
    wake_fd = reader.fileno() if config.wake_on_input else None

    with build_http_client(config) as client:
        transfer = HttpTransfer(url, client, config, output=output, wake_fd=wake_fd)
        transfer.set_read_callback(controller.produce_body)
        transfer.set_progress_callback(controller.on_progress)
        controller.attach(transfer)

        reporter.on_connect(url)
        with InterruptCanceller(controller):
            return transfer.perform()


def print_usage() -> int:
    print(USAGE, file=sys.stderr)
    return EXIT_USAGE


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: -1 for usage and setup errors, 1 for a failed transfer
        when fail_on_error is set, 0 otherwise
    """
    try:
        args = parse_args(argv)
        if args.help or not args.url:
            return print_usage()
        validate_url(args.url)
    except UsageError as e:
        print(f"{e}", file=sys.stderr)
        return print_usage()

    # Load configuration
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.fail:
        config.fail_on_error = True
    if args.no_echo:
        config.echo_response = False

    # Create reporters
    reporters = create_reporters(args)
    if len(reporters) == 1:
        reporter = reporters[0]
    else:
        reporter = CompositeReporter(reporters)

    try:
        reader = NonBlockingReader()
        reader.set_nonblocking()
    except SetupError as e:
        print(f"Setup error: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        result = run_transfer(args.url, config, reader, reporter)
    except KeyboardInterrupt:
        result = TransferResult(url=args.url, ok=False, error_message=INTERRUPTED_MESSAGE)
    finally:
        reader.restore()

    reporter.on_transfer_complete(result)

    if not result.ok and config.fail_on_error:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
