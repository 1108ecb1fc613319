import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation

from querykit.core.errors import InvalidQueryParameter

_TRUE_WORDS = {"1", "true", "yes", "y", "on", "evet"}
_FALSE_WORDS = {"0", "false", "no", "n", "off", "hayir", "hayır"}


def _calendar_date(text: str):
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def parse_date_bound(param: str, value, *, end_of_day: bool = False) -> datetime:
    """Parse a ``date_from``/``date_to`` value into an aware UTC datetime.

    Date-only values expand to the start of the day, or to its last
    microsecond when ``end_of_day`` is set.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.max if end_of_day else time.min)
    else:
        text = str(value or "").strip()
        if not text:
            raise InvalidQueryParameter(param, value, "date")
        try:
            day = _calendar_date(text)
            if day is not None:
                parsed = datetime.combine(day, time.max if end_of_day else time.min)
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidQueryParameter(param, value, "date")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _coerce_bool(column_key: str, value):
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise InvalidQueryParameter(column_key, value, "boolean")


def _coerce_number(column_key: str, value, python_type):
    if python_type in {int, float} and isinstance(value, (int, float)) and not isinstance(value, bool):
        return python_type(value)
    if python_type is Decimal and isinstance(value, Decimal):
        return value
    text = str(value).strip()
    if not text:
        raise InvalidQueryParameter(column_key, value, "number")
    normalized = text.replace(",", ".")
    try:
        if python_type is int:
            return int(normalized)
        if python_type is float:
            return float(normalized)
        return Decimal(normalized)
    except (ValueError, TypeError, InvalidOperation):
        raise InvalidQueryParameter(column_key, value, "number")


def _coerce_date(column_key: str, value):
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    text = str(value or "").strip()
    if not text:
        raise InvalidQueryParameter(column_key, value, "date")
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidQueryParameter(column_key, value, "date")


def _coerce_uuid(column_key: str, value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value or "").strip())
    except ValueError:
        raise InvalidQueryParameter(column_key, value, "UUID")


def column_python_type(column):
    try:
        return column.property.columns[0].type.python_type
    except Exception:
        return None


def coerce_column_value(column, value):
    """Convert a request value to the Python type a mapped column compares against.

    Unknown or string column types pass the value through untouched.
    """
    python_type = column_python_type(column)
    if python_type is None or value is None:
        return value
    column_key = column.key
    if python_type is uuid.UUID:
        return _coerce_uuid(column_key, value)
    if python_type is bool:
        return _coerce_bool(column_key, value)
    if python_type in {int, float, Decimal}:
        return _coerce_number(column_key, value, python_type)
    if python_type is datetime:
        return parse_date_bound(column_key, value)
    if python_type is date:
        return _coerce_date(column_key, value)
    return value
