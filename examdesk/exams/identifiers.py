from typing import Any, List

from bson import ObjectId

from examdesk.exams.errors import ValidationError


def canonical_id(value: Any) -> str:
    """
    Convert a question/option identifier to its canonical string form.

    Numbers and numeric strings coming back from the store compare equal:
    1, 1.0 and " 1 " all become "1".
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"Invalid identifier: {value!r}")
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"Invalid identifier: {value!r}")
        return str(int(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValidationError("Identifier cannot be empty")
        return text
    raise ValidationError(f"Invalid identifier type: {type(value).__name__}")


def store_variants(canonical: str) -> List[Any]:
    """Representations a canonical id may have been stored under."""
    variants: List[Any] = [canonical]
    # Only ids that survive an int round trip; "007" must not match a stored 7.
    digits = canonical[1:] if canonical.startswith("-") else canonical
    if digits.isdecimal() and str(int(canonical)) == canonical:
        variants.append(int(canonical))
    return variants
