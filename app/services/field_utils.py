from __future__ import annotations

from datetime import date, datetime, timezone

from app.config import settings
from app.errors import ValidationError

# Values as they arrive from request bodies, before validation.
RawValue = str | int | date | None


def now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


def is_blank(value: object) -> bool:
    return value is None or str(value).strip() == ''


def trim_and_limit(value: RawValue, max_length: int | None = None) -> str:
    limit = settings.max_field_length if max_length is None else max_length
    trimmed = str(value).strip()
    return trimmed[:limit]


def require_fields(fields: dict[str, object]) -> None:
    missing = [name for name, value in fields.items() if is_blank(value)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", details={'missing': missing})


def parse_int(value: RawValue, *, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a valid number')
    if isinstance(value, int):
        return value
    raw = str(value).strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f'{field} must be a valid number') from exc


def parse_positive_int(value: RawValue, *, field: str) -> int:
    parsed = parse_int(value, field=field)
    if parsed <= 0:
        raise ValidationError(f'{field} must be greater than zero')
    return parsed


def parse_optional_int(value: RawValue, *, field: str) -> int | None:
    if is_blank(value):
        return None
    return parse_int(value, field=field)


def parse_datetime(value: RawValue, *, field: str) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip())
        except ValueError as exc:
            raise ValidationError(f'Invalid date format for {field}') from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: RawValue, *, field: str) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return parse_datetime(value, field=field).date()
