from datetime import datetime, timezone


def utc_now() -> datetime:
    """Fecha/hora actual en UTC, con zona horaria."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normaliza a UTC con zona horaria; las fechas ingenuas (como las devuelve SQLite) se asumen UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
