"""App settings.

Flask loads this module on startup via ``app.config.from_pyfile(...)``; the
jobs read ``SETTINGS`` directly.

Secrets (the EDINET subscription key) never live here; see ``config.py``.
"""

# Single source of truth for static configuration.
SETTINGS: dict[str, object] = {
    # Flask
    "SECRET_KEY": "dev-not-secret",
    # Feature flags
    "ENABLE_DB_DOWNLOAD": True,
    "MIGRATE_ON_STARTUP": True,
    # Logging
    "LOG_LEVEL": "INFO",
    # EDINET API v2
    "EDINET_BASE_URL": "https://api.edinet-fsa.go.jp/api/v2",
    "EDINET_USER_AGENT": "edinet-screener/0.1 (local dev)",
    "HTTP_TIMEOUT_SECONDS": 60.0,
    # Daily price CSV (Stooq); tickers are "<code>.jp".
    "PRICE_BASE_URL": "https://stooq.com/q/d/l/",
    "PRICE_MARKET_SUFFIX": "jp",
    "PRICE_HISTORY_DAYS": 365,
    # Defaults for the process modes.
    "DEFAULT_TARGET_DATE": "2025-12-25",
    "LOCAL_PARSE_FILE": (
        "./data/S100WYZE/XBRL/PublicDoc/"
        "jpcrp040300-ssr-001_E02144-000_2025-09-30_01_2025-11-13.xbrl"
    ),
    "SERVER_HOST": "127.0.0.1",
    "SERVER_PORT": 8080,
}

# Optional convenience exports for app.config.from_pyfile (uppercase only).
SECRET_KEY = SETTINGS["SECRET_KEY"]
ENABLE_DB_DOWNLOAD = SETTINGS["ENABLE_DB_DOWNLOAD"]
MIGRATE_ON_STARTUP = SETTINGS["MIGRATE_ON_STARTUP"]
LOG_LEVEL = SETTINGS["LOG_LEVEL"]
