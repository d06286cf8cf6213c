import os
import time

from flask import Flask, jsonify, render_template, request

import db
from api.blueprint import create_api_blueprint
from api.schemas.api_responses import fail
from config import Config, configure_logging
from logging_utils import configure_app_logging, get_logger
from utils.migrate_sqlite_schema import migrate_engine


def init_db() -> int:
    """Bring the bound database up to the latest schema version."""

    return migrate_engine(db.engine)


def _wants_json() -> bool:
    return request.path.startswith("/api/") or (
        request.accept_mimetypes.best == "application/json"
    )


def create_app() -> Flask:
    app = Flask(__name__)

    # Load config from file, then let the environment override it.
    app.config.from_pyfile("settings.py")
    app.config.from_object(Config)

    # Configure unified app logging (UTC timestamps, per-file logs, daily rotation)
    configure_app_logging(app.config.get("LOG_LEVEL", "INFO"))
    logger = get_logger(__name__)

    configure_logging(app.logger, app.config.get("LOG_LEVEL", "INFO"))

    # --- slow request logging (opt-in by threshold; default 250ms) ---
    # Set to "0" to disable.
    slow_ms = int(os.getenv("SLOW_REQUEST_MS", "250") or "250")

    @app.before_request
    def _start_timer():
        if slow_ms > 0:
            request.environ["_req_start_ns"] = time.perf_counter_ns()

    @app.after_request
    def _log_slow_requests(resp):
        if slow_ms <= 0:
            return resp

        start_ns = request.environ.get("_req_start_ns")
        if not start_ns:
            return resp

        elapsed_ms = (time.perf_counter_ns() - int(start_ns)) / 1_000_000.0
        if elapsed_ms >= slow_ms:
            logger.warning(
                "SLOW_REQUEST ms=%.1f status=%s method=%s path=%s query=%s",
                elapsed_ms,
                getattr(resp, "status_code", "?"),
                request.method,
                request.path,
                request.query_string.decode("utf-8", errors="replace"),
            )
        return resp

    # Register routes/blueprints (respect feature flags)
    app.register_blueprint(
        create_api_blueprint(
            enable_db_download=app.config.get("ENABLE_DB_DOWNLOAD", True),
        )
    )

    # Error handlers
    @app.errorhandler(404)
    def not_found(_err):
        if _wants_json():
            return jsonify(fail("not found", code="not_found")), 404
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def server_error(_err):
        logger.exception("Unhandled server error")
        if _wants_json():
            return jsonify(fail("internal server error", code="server_error")), 500
        return render_template("errors/500.html"), 500

    # Schema migration runs once here, never per request.
    if app.config.get("MIGRATE_ON_STARTUP", True):
        version = init_db()
        logger.info("Database ready | path=%s schema_version=%s", db.database_path(), version)

    return app


# NOTE: Do not instantiate the Flask app at import time.
# Tests patch the DB engine/sessionmaker before calling create_app().
app: Flask | None = None


if __name__ == "__main__":
    app = create_app()
    get_logger(__name__).info("Starting Flask app")
    app.run(debug=True, use_reloader=False)
