from flask import Blueprint, render_template

home_bp = Blueprint("home", __name__)


@home_bp.route("/", methods=["GET"])
def home_page():
    """Dashboard shell; data is loaded client-side from /api/v1."""
    return render_template("pages/home.html"), 200
