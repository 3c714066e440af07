"""
Drawer 진입점

실행 방법:
    python -m drawer --help
"""

import sys

from drawer.cli import main

if __name__ == "__main__":
    sys.exit(main())
