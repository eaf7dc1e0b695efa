"""
Module execution entry point.

Allows running with: python -m keyhost_cli
"""

import sys
from keyhost_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
