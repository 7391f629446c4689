"""UUID identifier validation.

Ids reach PostgreSQL `UUID` columns, where a malformed value fails the whole
statement, so they are checked before any query is built.
"""

from typing import Any, Iterable, Optional
from uuid import UUID

from gestao_imoveis.core.exceptions import ValidationError


def is_valid_uuid(value: Any) -> bool:
    """Check whether a value is a UUID or a string that parses as one.

    Examples:
        >>> is_valid_uuid("4f1c2b9e-8d7a-4c3b-9e2f-1a2b3c4d5e6f")
        True
        >>> is_valid_uuid("abc")
        False
    """
    if isinstance(value, UUID):
        return True
    if not isinstance(value, str):
        return False
    try:
        UUID(value)
    except ValueError:
        return False
    return True


def require_uuid(value: Any, message: str) -> str:
    """Return the canonical string form of a UUID id.

    Raises:
        ValidationError: If the value is not a valid UUID
    """
    if not is_valid_uuid(value):
        raise ValidationError(message, details={"id": str(value)})
    return str(UUID(str(value)))


def optional_uuid(value: Optional[Any], message: str) -> Optional[str]:
    """Like require_uuid, but empty values pass through as None."""
    if value is None or value == "":
        return None
    return require_uuid(value, message)


def require_uuids(values: Iterable[Any], message: str) -> list[str]:
    """Validate a batch of ids, keeping order and dropping duplicates."""
    invalid = [str(v) for v in values if not is_valid_uuid(v)]
    if invalid:
        raise ValidationError(message, details={"ids": invalid})
    return list(dict.fromkeys(str(UUID(str(v))) for v in values))
