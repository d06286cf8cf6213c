from flask import Blueprint

from api.pages.home import home_bp
from api.pages.db_download import db_download_bp
from api.api_v1.blueprint import create_api_v1_blueprint


def create_api_blueprint(*, enable_db_download: bool = True) -> Blueprint:
    """Create the main API blueprint and register page blueprints.

    Keep this as the single registration point to avoid double-registering routes.
    """
    api_bp = Blueprint("api", __name__)

    api_bp.register_blueprint(home_bp)

    if enable_db_download:
        api_bp.register_blueprint(db_download_bp)

    # Versioned API
    api_bp.register_blueprint(create_api_v1_blueprint())

    return api_bp
