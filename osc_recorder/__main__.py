"""
osc_recorder - Entry point

Run with: python -m osc_recorder record|replay|info ...
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
