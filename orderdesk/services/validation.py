# orderdesk/services/validation.py
import uuid
from decimal import Decimal, InvalidOperation

from pydantic import EmailStr, TypeAdapter, ValidationError

from orderdesk.core.errors import InvalidArgumentError, OrderDeskError

MIN_ADDRESS_LENGTH = 5
MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6

_email_adapter = TypeAdapter(EmailStr)


def parse_id(
    raw: str | uuid.UUID | None,
    error_cls: type[OrderDeskError],
    message: str,
) -> uuid.UUID:
    """
    Parse an id coming from a path or payload.

    Empty, "undefined" and non-UUID values raise `error_cls(message)`.
    """
    if isinstance(raw, uuid.UUID):
        return raw
    value = str(raw or "").strip()
    if not value or value == "undefined":
        raise error_cls(message)
    try:
        return uuid.UUID(value)
    except ValueError:
        raise error_cls(message)


def require_positive_int(value, message: str) -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidArgumentError(message)
    return value


def require_text(value: str | None, min_length: int, empty_message: str, short_message: str) -> str:
    """Trim and enforce a minimum length."""
    text = str(value or "").strip()
    if not text:
        raise InvalidArgumentError(empty_message)
    if len(text) < min_length:
        raise InvalidArgumentError(short_message)
    return text


def require_price(value, message: str) -> Decimal:
    """Non-negative, finite decimal."""
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidArgumentError(message)
    if not price.is_finite() or price < 0:
        raise InvalidArgumentError(message)
    return price


def require_email(value: str | None, message: str) -> str:
    """Trimmed, lower-cased address, validated by pydantic's EmailStr."""
    email = str(value or "").strip().lower()
    try:
        return _email_adapter.validate_python(email)
    except ValidationError:
        raise InvalidArgumentError(message)
