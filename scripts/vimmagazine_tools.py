#!/usr/bin/env python3
"""
Render the Vim magazine digest from a source checkout.

Usage:
  python scripts/vimmagazine_tools.py generate state.json
  python scripts/vimmagazine_tools.py generate --update state.json
  python scripts/vimmagazine_tools.py --log-level INFO scriptjson > scripts.json
"""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from vimmagazine.cli import main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(main())
