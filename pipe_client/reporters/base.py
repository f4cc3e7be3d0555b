"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pipe_client.models import TransferResult


class Reporter(ABC):
    """Abstract base class for transfer reporters."""

    @abstractmethod
    def on_connect(self, url: str) -> None:
        """Called just before the transfer starts."""
        pass

    @abstractmethod
    def on_input_idle(self) -> None:
        """Called once when input runs dry and the upload starts waiting."""
        pass

    @abstractmethod
    def on_input_resumed(self) -> None:
        """Called when data arrives again after an idle period."""
        pass

    @abstractmethod
    def on_transfer_complete(self, result: "TransferResult") -> None:
        """Called when the transfer has finished, successfully or not."""
        pass
