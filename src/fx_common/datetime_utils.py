"""UTC datetime utilities."""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utc_now().date()


def parse_iso_timestamp(value: str | None) -> datetime | None:
    """Parse a processor timestamp ('2026-10-21T12:00:00Z' or with offset).

    Naive values are taken as UTC. Empty or missing values give None.
    """
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
