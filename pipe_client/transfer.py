"""HTTP transfer engine built on httpx.

Runs a streaming PUT whose body is pulled from a read callback, with a
pausable write side and a progress callback fired on a fixed cadence.

The read callback returns:
- non-empty bytes: written to the wire
- b"": the body is complete
- PAUSE: stop asking for body data until resume() is called

The progress callback receives (dl_total, dl_now, ul_total, ul_now) and
returns 0 to continue; any other value aborts the transfer.

Everything runs synchronously in the thread calling perform(). While the
write side is paused the body generator waits at most one tick interval
(on readiness of wake_fd when given) and then fires a progress tick,
which is the only way a pause is lifted.
"""

import select
import time
from typing import BinaryIO, Callable, Iterator, Optional

import httpx

from pipe_client.config import ClientConfig
from pipe_client.flow import PAUSE, BodyChunk
from pipe_client.models import TransferResult

ReadCallback = Callable[[int], BodyChunk]
ProgressCallback = Callable[[int, int, int, int], int]

ABORTED_MESSAGE = "Operation was aborted by an application callback"


class TransferAborted(Exception):
    """Raised inside the transfer when the progress callback asks to abort."""

    pass


def build_http_client(config: ClientConfig) -> httpx.Client:
    """Build an httpx client for a long-lived streaming upload.

    Only the connect and read phases are bounded; writes may stall for as
    long as the input does.
    """
    timeout = httpx.Timeout(
        connect=config.connect_timeout,
        read=config.read_timeout,
        write=None,
        pool=None,
    )
    return httpx.Client(timeout=timeout)


def describe_error(error: Exception) -> str:
    """Human-readable diagnostic for a failed transfer."""
    message = str(error)
    return message if message else type(error).__name__


class HttpTransfer:
    """One PUT upload driven by callbacks."""

    def __init__(
        self,
        url: str,
        client: httpx.Client,
        config: Optional[ClientConfig] = None,
        output: Optional[BinaryIO] = None,
        wake_fd: Optional[int] = None,
    ):
        """Initialize the transfer.

        Args:
            url: Destination URL
            client: httpx client to send the request with
            config: Client configuration (defaults if omitted)
            output: Optional binary stream receiving the response body
            wake_fd: Optional descriptor whose readiness ends a paused wait early
        """
        self.url = url
        self.client = client
        self.config = config if config is not None else ClientConfig()
        self.output = output
        self.wake_fd = wake_fd

        self._read_callback: Optional[ReadCallback] = None
        self._progress_callback: Optional[ProgressCallback] = None
        self._paused = False
        self._last_tick = 0.0
        self._download_total = 0

        self.pause_count = 0
        self.resume_count = 0
        self.bytes_sent = 0
        self.bytes_received = 0

    def set_read_callback(self, callback: ReadCallback) -> None:
        self._read_callback = callback

    def set_progress_callback(self, callback: ProgressCallback) -> None:
        self._progress_callback = callback

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        """Stop requesting body data until resume() is called."""
        if not self._paused:
            self._paused = True
            self.pause_count += 1

    def resume(self) -> None:
        """Let the body generator request data again."""
        if self._paused:
            self._paused = False
            self.resume_count += 1

    def _tick(self) -> None:
        self._last_tick = time.monotonic()
        rc = self._progress_callback(
            self._download_total, self.bytes_received, 0, self.bytes_sent
        )
        if rc:
            raise TransferAborted(ABORTED_MESSAGE)

    def _maybe_tick(self) -> None:
        if time.monotonic() - self._last_tick >= self.config.progress_interval:
            self._tick()

    def _wait_while_paused(self) -> None:
        interval = self.config.progress_interval
        if self.wake_fd is None:
            time.sleep(interval)
            return
        try:
            select.select([self.wake_fd], [], [], interval)
        except (OSError, ValueError):
            # Descriptor not selectable on this platform
            time.sleep(interval)

    def _body(self) -> Iterator[bytes]:
        while True:
            if self._paused:
                self._wait_while_paused()
                self._tick()
                continue

            self._maybe_tick()

            chunk = self._read_callback(self.config.chunk_size)
            if chunk is PAUSE:
                self.pause()
                continue
            if not chunk:
                return

            self.bytes_sent += len(chunk)
            yield chunk

    def _echo(self, chunk: bytes) -> None:
        try:
            self.output.write(chunk)
            self.output.flush()
        except OSError:
            # Stdout reader went away, e.g. `| head -1`
            self.output = None

    def _receive(self, response: httpx.Response) -> None:
        try:
            self._download_total = int(response.headers.get("Content-Length", "0"))
        except ValueError:
            self._download_total = 0

        for chunk in response.iter_bytes():
            self.bytes_received += len(chunk)
            if self.output is not None:
                self._echo(chunk)
            self._maybe_tick()

    def perform(self) -> TransferResult:
        """Execute the upload synchronously.

        Progress ticks fire between body reads and response chunks only.
        While the connection is being set up, a socket write is blocked or
        the response headers are awaited, no tick runs, so a cancel() made
        through the progress callback takes effect only afterwards.

        Returns:
            TransferResult; network errors, aborts and HTTP error statuses
            are reported in it rather than raised. Echoing stops silently
            if the output stream fails.

        Raises:
            RuntimeError: If the callbacks were not registered.
        """
        if self._read_callback is None or self._progress_callback is None:
            raise RuntimeError("Transfer callbacks not registered")

        start = time.monotonic()
        self._last_tick = start
        status_code: Optional[int] = None
        error_message: Optional[str] = None

        try:
            with self.client.stream(
                "PUT",
                self.url,
                content=self._body(),
                headers=self.config.headers,
            ) as response:
                status_code = response.status_code
                self._receive(response)
                if response.is_error:
                    error_message = f"HTTP {status_code} {response.reason_phrase}".strip()
        except TransferAborted as e:
            error_message = str(e)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            error_message = describe_error(e)

        return TransferResult(
            url=self.url,
            ok=error_message is None,
            status_code=status_code,
            error_message=error_message,
            bytes_sent=self.bytes_sent,
            bytes_received=self.bytes_received,
            pauses=self.pause_count,
            resumes=self.resume_count,
            duration_seconds=time.monotonic() - start,
        )
