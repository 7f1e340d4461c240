"""
Validators shared by the partial-update schemas.
"""
from pydantic import ValidationInfo, field_validator


def not_null(*fields: str):
    """
    Refuse an explicit ``null`` for ``fields``.

    Update schemas make every field optional so it can be omitted, but the
    columns behind ``fields`` are NOT NULL and may not be cleared.
    """
    def check(cls, value, info: ValidationInfo):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    return field_validator(*fields)(check)
