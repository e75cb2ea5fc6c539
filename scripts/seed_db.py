from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.fleet_admin.fleet_admin.container import build_container
from src.fleet_admin.fleet_admin.core.exceptions import ValidationError


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    container = build_container(db_config=db_config)
    try:
        created = container.admin_service.initialize_defaults()
    except ValidationError as e:
        print(f"SKIP: {e}")
        return

    print(
        f"OK: Created {', '.join(a.username for a in created)} -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
