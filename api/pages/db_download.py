from __future__ import annotations

import os

from flask import Blueprint, jsonify, send_file

import db
from api.schemas.api_responses import not_found
from logging_utils import get_logger

logger = get_logger(__name__)

db_download_bp = Blueprint("db_download", __name__)


@db_download_bp.route("/download/db", methods=["GET"])
def download_db():
    """Send the raw SQLite file as an attachment."""

    path = db.database_path()
    if not path or not os.path.isfile(path):
        return jsonify(not_found("database file not found")), 404

    logger.info("DB download | path=%s size=%s", path, os.path.getsize(path))
    return send_file(
        os.path.abspath(path),
        mimetype="application/vnd.sqlite3",
        as_attachment=True,
        download_name=os.path.basename(path),
    )
