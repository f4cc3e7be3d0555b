#!/usr/bin/env python3
"""
Pipe client

Stream standard input to a URL with an HTTP PUT.

Usage:
    some-command | python run.py https://pipeto.me/<code>
    some-command | python run.py -v https://pipeto.me/<code>   # Show pause/resume events
    some-command | python run.py --fail URL                    # Non-zero exit on failure
    some-command | python run.py -j summary.json URL           # Write JSON summary
"""

import sys
from pipe_client.cli import main

if __name__ == "__main__":
    sys.exit(main())
