from datetime import date, datetime, timezone

# tried in order after ISO-8601
_FALLBACK_FORMATS = ("%m/%d/%Y", "%d/%m/%Y", "%m-%d-%Y", "%d-%m-%Y")


def ensure_aware_utc(dt):
    if dt is None:
        return None
    if isinstance(dt, str):
        try:
            if dt.endswith("Z"):
                dt = dt[:-1]
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def smart_parse_date(value):
    """
    Accept whatever date shape the calendar forms send and return an aware
    UTC datetime, or None when nothing matches.

    "2025-03-04" and "2025-03-04T10:00:00Z" parse as ISO; slash and dash
    forms are read month-first, then day-first.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    text = str(value).strip()
    parsed = ensure_aware_utc(text)
    if parsed is not None:
        return parsed

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None
