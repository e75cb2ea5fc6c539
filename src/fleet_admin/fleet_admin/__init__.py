"""Fleet Admin package.

This package is organized by feature modules (employees, vehicles, payments,
bills, admins, reports) with a thin Flask JSON controller layer on top of
service/repository layers.
"""
from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .admins.controller import register as register_admins
from .bills.controller import register as register_bills
from .container import Container, build_container
from .core.constants import DEFAULT_SESSION_DAYS
from .core.exceptions import ValidationError
from .database.bootstrap import apply_schema, list_tables
from .employees.controller import register as register_employees
from .payments.controller import register as register_payments
from .reports.controller import register as register_reports
from .vehicles.controller import register as register_vehicles

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format=LOG_FORMAT)

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["REQUIRE_AUTH"] = bool(getattr(settings, "REQUIRE_AUTH", True))
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(days=int(getattr(settings, "SESSION_DAYS", DEFAULT_SESSION_DAYS)))
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = bool(getattr(settings, "SESSION_COOKIE_SECURE", False))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        container = build_container(db_config=db_config)

        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            try:
                container.admin_service.initialize_defaults()
            except ValidationError:
                logger.info("admin accounts already present, seed skipped")

    register_admins(app, container)
    register_employees(app, container)
    register_vehicles(app, container)
    register_payments(app, container)
    register_bills(app, container)
    register_reports(app, container)

    return app
