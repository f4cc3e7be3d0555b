"""Upload flow control.

Bridges the non-blocking stdin reader to the transfer engine's body
requests. When the reader has nothing ready the engine's write side is
paused; the next progress tick resumes it so the engine asks again.

States:
    Idle           - body requests are answered from the reader
    AwaitingInput  - write side paused, waiting for the next tick

At most one pause is outstanding at a time, and each pause is followed
by exactly one resume.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional, Protocol, Union

from pipe_client.models import ReadStatus, TransferState

if TYPE_CHECKING:
    from pipe_client.reader import NonBlockingReader
    from pipe_client.reporters.base import Reporter


class BodySignal(Enum):
    """Non-data answers produce_body() can give the engine."""

    PAUSE = "pause"


PAUSE = BodySignal.PAUSE

# Progress callback return values
CONTINUE = 0
ABORT = 1


class Transfer(Protocol):
    """Write-side controls of a transfer."""

    def pause(self) -> None: ...

    def resume(self) -> None: ...


BodyChunk = Union[bytes, BodySignal]


class FlowController:
    """Pause/resume state machine driven by the transfer's callbacks.

    Both callbacks are invoked synchronously from the thread running the
    transfer, so the shared state needs no locking.
    """

    def __init__(
        self,
        reader: "NonBlockingReader",
        state: Optional[TransferState] = None,
        reporter: Optional["Reporter"] = None,
    ):
        """Initialize the controller.

        Args:
            reader: Non-blocking input reader
            state: Shared transfer state (a fresh one if omitted)
            reporter: Optional reporter notified when input goes idle and
                returns
        """
        self.reader = reader
        self.state = state if state is not None else TransferState()
        self.reporter = reporter
        self.cancelled = False
        self.input_idle = False

    def attach(self, transfer: Transfer) -> None:
        """Associate the active transfer so ticks can resume it."""
        self.state.transfer = transfer

    def cancel(self) -> None:
        """Abort the transfer on the next progress tick."""
        self.cancelled = True

    def produce_body(self, max_len: int) -> BodyChunk:
        """Supply the next chunk of the upload body.

        Args:
            max_len: Maximum chunk size the engine accepts.

        Returns:
            Non-empty bytes, b"" once the body is complete, or PAUSE when
            no input is ready yet.
        """
        state = self.state
        if state.body_complete:
            return b""

        outcome = self.reader.try_read(max_len)

        if outcome.status == ReadStatus.DATA:
            state.awaiting_input = False
            if self.input_idle:
                self.input_idle = False
                if self.reporter is not None:
                    self.reporter.on_input_resumed()
            return outcome.data

        if outcome.status == ReadStatus.WOULD_BLOCK:
            if not state.awaiting_input:
                state.awaiting_input = True
                state.pauses += 1
            if not self.input_idle:
                # Ticks resume and re-pause while input stays empty; one
                # idle period lasts until the next data read
                self.input_idle = True
                if self.reporter is not None:
                    self.reporter.on_input_idle()
            return PAUSE

        # End of input and read errors both end the body
        state.body_complete = True
        state.awaiting_input = False
        return b""

    def on_progress(
        self,
        dl_total: int,
        dl_now: int,
        ul_total: int,
        ul_now: int,
    ) -> int:
        """Handle a periodic progress tick from the engine.

        Byte counts are accepted for interface compatibility and unused.

        Returns:
            CONTINUE, or ABORT once cancel() has been called.
        """
        if self.cancelled:
            return ABORT

        state = self.state
        if state.awaiting_input:
            state.awaiting_input = False
            state.resumes += 1
            if state.transfer is not None:
                state.transfer.resume()

        return CONTINUE
