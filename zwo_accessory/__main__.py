"""
Main entry point for the ZWO accessory tools.

Usage:
    python -m zwo_accessory focuser [--config CONFIG_PATH] [POSITION]
    python -m zwo_accessory wheel [--config CONFIG_PATH] [SLOT]
"""

import sys

from zwo_accessory.cli import main


if __name__ == "__main__":
    sys.exit(main())
