from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_accounts, list_tables

from .accounts.controller import register as register_accounts
from .badges.controller import register as register_badges
from .companies.controller import register as register_companies
from .face.controller import register as register_face
from .profiles.controller import register as register_profiles
from .projects.controller import register as register_projects
from .reports.controller import register as register_reports
from .scheduled_reports.controller import register as register_scheduled_reports
from .schedules.controller import register as register_schedules
from .storage.controller import register as register_storage
from .tasks.controller import register as register_tasks
from .time_entries.controller import register as register_time_entries
from .time_off.controller import register as register_time_off

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"


def load_settings(settings_module: Optional[str] = None):
    load_dotenv(override=False)
    return importlib.import_module(settings_module or get_settings_module())


def configure_logging(settings) -> None:
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def prepare_database(settings) -> None:
    db_config = getattr(settings, "DB_CONFIG")
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_accounts(db_config, pin_key=getattr(settings, "PIN_LOOKUP_KEY", None) or settings.SECRET_KEY)
        logger.info("Demo seed ready")


def create_app(container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    settings = load_settings(settings_module)
    configure_logging(settings)

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["CRON_SECRET"] = getattr(settings, "CRON_SECRET", "")
    app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings.__name__,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        prepare_database(settings)
        container = build_container(db_config=db_config, settings=settings)

    app.extensions["timeclock"] = container

    register_accounts(app, container)
    register_companies(app, container)
    register_profiles(app, container)
    register_time_entries(app, container)
    register_tasks(app, container)
    register_face(app, container)
    register_badges(app, container)
    register_projects(app, container)
    register_schedules(app, container)
    register_time_off(app, container)
    register_reports(app, container)
    register_scheduled_reports(app, container)
    register_storage(app, container)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return {"status": "ok"}

    return app
