"""Securities-code helpers.

EDINET publishes a 5-character securities code (e.g. "72030"); the trailing
character is a check/market digit. Stored entities and price tickers use
the leading four characters ("7203").
"""

from __future__ import annotations

SHORT_CODE_LENGTH = 4


class InvalidSecurityCodeError(ValueError):
    pass


def to_short_code(sec_code: str | None) -> str:
    """Truncate an EDINET securities code to its 4-character short form.

    Policy for malformed input: codes shorter than four characters (after
    trimming) are rejected with `InvalidSecurityCodeError` rather than
    passed through, so they never become storage keys.
    """

    raw = (sec_code or "").strip()
    if len(raw) < SHORT_CODE_LENGTH:
        raise InvalidSecurityCodeError(f"securities code too short: {raw!r}")
    return raw[:SHORT_CODE_LENGTH]


def price_ticker(code: str, market_suffix: str = "jp") -> str:
    """Ticker used by the daily price endpoint, e.g. "7203" -> "7203.jp"."""

    return f"{to_short_code(code)}.{market_suffix}"
