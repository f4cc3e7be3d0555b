"""
Pipe client.

Streams standard input to an HTTP endpoint with a PUT request, pausing
the upload while stdin is idle and resuming when data arrives.
"""

__version__ = "1.0.0"

from pipe_client.cli import main

__all__ = ["main", "__version__"]
