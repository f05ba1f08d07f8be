from datetime import datetime, timezone, tzinfo

UTC = timezone.utc

def now_utc() -> datetime:
    return datetime.now(tz=UTC)

def as_utc(dt: datetime) -> datetime:
    """Наивное время считаем уже UTC, aware приводим к UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)

def civil_to_utc(dt: datetime, tz: tzinfo) -> datetime:
    """Гражданское время в зоне деплоя -> абсолютный момент в UTC. Конвертируем один раз."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt.astimezone(UTC)

def to_iso(dt: datetime) -> str:
    return as_utc(dt).isoformat()

def from_iso(value: str) -> datetime:
    return as_utc(datetime.fromisoformat(value))
