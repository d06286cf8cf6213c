import logging
import os


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    v = (os.getenv(name) or "").strip()
    if not v:
        return default
    try:
        return float(v)
    except ValueError:
        return default


def edinet_api_key() -> str:
    """Return the EDINET subscription key, or "" when unset.

    Read at call time: an empty key switches every fetching mode to the
    bundled mock data.
    """

    return (os.getenv("EDINET_API_KEY") or "").strip()


class Config:
    """Base configuration loaded from environment variables."""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-not-secret")

    # Feature flags
    ENABLE_DB_DOWNLOAD: bool = _env_bool("ENABLE_DB_DOWNLOAD", True)
    MIGRATE_ON_STARTUP: bool = _env_bool("MIGRATE_ON_STARTUP", True)

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Rate-limit courtesy delays (seconds)
    BATCH_DAY_DELAY_SECONDS: float = _env_float("BATCH_DAY_DELAY_SECONDS", 3.0)
    PRICE_FETCH_DELAY_SECONDS: float = _env_float("PRICE_FETCH_DELAY_SECONDS", 1.0)


def configure_logging(app_logger: logging.Logger, level_name: str) -> None:
    """Configure the Flask app logger in a simple, predictable way."""

    level = getattr(logging, level_name, logging.INFO)

    # Avoid duplicate handlers (e.g., in tests or reload scenarios)
    if app_logger.handlers:
        app_logger.setLevel(level)
        return

    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    handler.setFormatter(formatter)

    app_logger.addHandler(handler)
    app_logger.setLevel(level)
