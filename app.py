"""Development server entry point: `python app.py`."""
from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.fleet_admin.fleet_admin.main import main

if __name__ == "__main__":
    main()
