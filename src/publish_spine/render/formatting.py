"""Fixed-locale (en-US) formatting used by the page templates."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, TypeVar

from publish_spine.core.timestamps import EPOCH, parse_timestamp, to_iso8601

MISSING = "—"

T = TypeVar("T")

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def us_date(value: Any) -> str:
    """``2024-01-05T10:00:00Z`` -> ``Jan 5, 2024``; missing -> em dash."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return MISSING
    return f"{MONTHS[parsed.month - 1]} {parsed.day}, {parsed.year}"


def iso_datetime(value: Any) -> str:
    """Normalised ISO timestamp for ``<meta name="date">``; empty if missing."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    return to_iso8601(parsed)


def currency(value: Any) -> str:
    """
    US dollar amount with thousands grouping.

    At most three fraction digits, trailing zeros dropped (``1234.5`` ->
    ``$1,234.5``, ``150`` -> ``$150``). Missing or non-numeric -> em dash.
    """
    if value is None or value == "" or isinstance(value, bool):
        return MISSING
    try:
        number = float(value)
    except (TypeError, ValueError):
        return MISSING
    if number.is_integer():
        return f"${int(number):,}"
    return "$" + f"{number:,.3f}".rstrip("0").rstrip(".")


def badge_class(recommendation_type: Any) -> str:
    """CSS class for the recommendation badge."""
    normalized = str(recommendation_type or "").strip().lower()
    if normalized == "buy":
        return "badge-buy"
    if normalized == "sell":
        return "badge-sell"
    return "badge-neutral"


def published_sort_key(published_at: Any) -> datetime:
    """Missing or unparseable timestamps sort as the epoch (oldest)."""
    return parse_timestamp(published_at) or EPOCH


def newest_first(items: Iterable[T], key: str = "published_at") -> list[T]:
    """Sort by publication time, newest first; ties keep their input order."""
    return sorted(items, key=lambda item: published_sort_key(getattr(item, key, None)), reverse=True)
