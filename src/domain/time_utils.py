from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_in_future(dt: datetime, now: datetime | None = None) -> bool:
    return ensure_utc(dt) > (now or utc_now())
