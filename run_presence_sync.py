#!/usr/bin/env python3
"""
Run one user presence sync pass.

Usage:
    python run_presence_sync.py                    # Reconcile every user
    python run_presence_sync.py --workers 4        # Process up to four chunks at once
    python run_presence_sync.py --window-minutes 10
"""
import sys

from presence_sync.cli import main


if __name__ == "__main__":
    sys.exit(main())
