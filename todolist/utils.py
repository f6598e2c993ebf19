from datetime import datetime, timezone


def now_utc() -> datetime:
    """Return timezone-aware current UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes returned by SQLite."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def clean_text(text) -> str:
    """Strip surrounding whitespace; non-strings become ''."""
    if not isinstance(text, str):
        return ''
    return text.strip()


def is_blank(text) -> bool:
    return clean_text(text) == ''
