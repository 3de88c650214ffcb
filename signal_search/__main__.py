"""Allow ``python -m signal_search``."""

from __future__ import annotations

import sys

from signal_search.cli import main

if __name__ == "__main__":
    sys.exit(main())
