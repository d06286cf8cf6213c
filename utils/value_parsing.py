from __future__ import annotations


def parse_xbrl_integer(text: str | None) -> int | None:
    """Parse the text content of a numeric XBRL fact.

    Returns a positive int, or None when the value is missing, not a number,
    or not positive. EDINET filings use 0 as a placeholder for items the
    filer does not report, so a zero never counts as "found".

    Decimal facts ("1234.0") are truncated; thousands separators are
    tolerated.
    """

    if text is None:
        return None

    s = str(text).strip().replace(",", "")
    if s == "":
        return None

    try:
        if s.isdigit():
            value = int(s)
        else:
            value = int(float(s))
    except (ValueError, OverflowError):
        return None

    return value if value > 0 else None


def parse_csv_float(text: str | None) -> float | None:
    """Parse a price cell. Empty / "null" / garbage -> None."""

    if text is None:
        return None
    s = str(text).strip()
    if s == "" or s.lower() in {"null", "nan", "n/a", "-"}:
        return None
    try:
        return float(s)
    except ValueError:
        return None


def parse_csv_int(text: str | None) -> int | None:
    value = parse_csv_float(text)
    if value is None:
        return None
    return int(value)
