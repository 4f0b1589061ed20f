from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_jwt_extended import JWTManager

from config import get_settings_module

from .common import http
from .container import Container, build_container
from .core.constants import DEFAULT_TOKEN_HOURS
from .database.bootstrap import apply_schema, list_tables
from .access_requests.controller import register as register_access_requests
from .dashboard.controller import register as register_dashboard
from .edit_requests.controller import register as register_edit_requests
from .locations.controller import register as register_locations
from .projects.controller import register as register_projects
from .reports.controller import register as register_reports
from .time_entries.controller import register as register_time_entries
from .users.controller import register as register_users

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory. Pass ``container`` to run on other repositories (tests use in-memory ones)."""

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format=LOG_FORMAT)

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["JWT_SECRET_KEY"] = getattr(settings, "JWT_SECRET_KEY", app.secret_key)
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
        hours=int(getattr(settings, "JWT_ACCESS_TOKEN_HOURS", DEFAULT_TOKEN_HOURS))
    )
    db_config = getattr(settings, "DB_CONFIG")

    jwt = JWTManager(app)
    http.register(app, jwt)

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        container = build_container(db_config=db_config)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    register_users(app, container)
    register_projects(app, container)
    register_access_requests(app, container)
    register_reports(app, container)
    register_edit_requests(app, container)
    register_time_entries(app, container)
    register_locations(app, container)
    register_dashboard(app, container)

    return app
