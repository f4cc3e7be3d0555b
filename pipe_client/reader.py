"""Non-blocking reader for standard input.

Reads chunks from a file descriptor without ever blocking the caller.
"No data right now" is reported distinctly from end-of-input, and read
failures other than would-block are absorbed:

- bytes available   -> ReadStatus.DATA
- EAGAIN/EWOULDBLOCK -> ReadStatus.WOULD_BLOCK
- zero bytes        -> ReadStatus.END_OF_INPUT
- any other OSError -> ReadStatus.ERROR
"""

import os
import sys
from typing import Optional

from pipe_client.models import ReadOutcome, ReadStatus


class SetupError(Exception):
    """Raised when the input descriptor cannot be made non-blocking."""

    pass


class NonBlockingReader:
    """Non-blocking chunk reader over a file descriptor.

    Can be used as a context manager: entering switches the descriptor to
    non-blocking mode, exiting restores the mode it had before.
    """

    def __init__(self, fd: Optional[int] = None):
        """Initialize the reader.

        Args:
            fd: Descriptor to read from (defaults to stdin)

        Raises:
            SetupError: If stdin has no usable descriptor.
        """
        if fd is None:
            try:
                fd = sys.stdin.fileno()
            except (AttributeError, OSError, ValueError) as e:
                raise SetupError(f"standard input has no file descriptor: {e}") from e
        self.fd = fd
        self._was_blocking: Optional[bool] = None

    def fileno(self) -> int:
        return self.fd

    def set_nonblocking(self) -> None:
        """Put the descriptor into non-blocking mode.

        Raises:
            SetupError: If the mode cannot be changed.
        """
        try:
            was_blocking = os.get_blocking(self.fd)
            os.set_blocking(self.fd, False)
        except OSError as e:
            raise SetupError(f"cannot set non-blocking mode on fd {self.fd}: {e}") from e
        if self._was_blocking is None:
            self._was_blocking = was_blocking

    def restore(self) -> None:
        """Restore the blocking mode seen before set_nonblocking()."""
        if self._was_blocking is None:
            return
        try:
            os.set_blocking(self.fd, self._was_blocking)
        except OSError:
            # Descriptor may already be closed at shutdown
            pass
        self._was_blocking = None

    def try_read(self, max_len: int) -> ReadOutcome:
        """Attempt to read up to max_len bytes without blocking.

        Args:
            max_len: Maximum number of bytes to return.

        Returns:
            ReadOutcome describing what happened.
        """
        try:
            data = os.read(self.fd, max_len)
        except BlockingIOError:
            return ReadOutcome.would_block()
        except OSError:
            return ReadOutcome.error()

        if not data:
            return ReadOutcome.end_of_input()
        return ReadOutcome(ReadStatus.DATA, data)

    def __enter__(self) -> "NonBlockingReader":
        self.set_nonblocking()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.restore()
        return False
