"""JSON reporter for structured transfer summaries."""

import json
from pathlib import Path
from typing import Optional

from pipe_client.reporters.base import Reporter
from pipe_client.models import TransferResult


class JsonReporter(Reporter):
    """Writes the transfer outcome as JSON.

    Args:
        output_path: Optional file path to write JSON output
    """

    def __init__(self, output_path: Optional[str] = None):
        self.output_path = output_path
        self.idle_periods = 0

    def on_connect(self, url: str) -> None:
        """No-op for JSON reporter."""
        pass

    def on_input_idle(self) -> None:
        self.idle_periods += 1

    def on_input_resumed(self) -> None:
        """No-op; idle periods are counted when they start."""
        pass

    def on_transfer_complete(self, result: TransferResult) -> dict:
        """Generate and output JSON data.

        Args:
            result: The finished transfer

        Returns:
            The generated JSON data as a dictionary
        """
        output = result.to_dict()
        output["idle_periods"] = self.idle_periods

        if self.output_path:
            self._write_to_file(output)

        return output

    def _write_to_file(self, output: dict) -> None:
        path = Path(self.output_path)

        # Create parent directories if needed
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.output_path, "w") as f:
            json.dump(output, f, indent=2)
