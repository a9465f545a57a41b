#!/usr/bin/env python3
"""
MEIUnpack - Entry Point
=======================

Runs the command-line tool from a source checkout or a frozen build.
"""

import sys
from pathlib import Path

# Determine if we're running as a PyInstaller bundle
IS_FROZEN = getattr(sys, 'frozen', False)

if IS_FROZEN:
    BUNDLE_DIR = Path(sys._MEIPASS)
    if str(BUNDLE_DIR) not in sys.path:
        sys.path.insert(0, str(BUNDLE_DIR))
else:
    SCRIPT_DIR = Path(__file__).parent
    if str(SCRIPT_DIR) not in sys.path:
        sys.path.insert(0, str(SCRIPT_DIR))


def main() -> int:
    """Main entry point; logging is configured by meiunpack.cli.main."""
    from meiunpack.cli import main as cli_main

    try:
        return cli_main()
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
