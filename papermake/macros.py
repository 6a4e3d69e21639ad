"""Compact textual notation for declaring schemas."""

from __future__ import annotations

from .errors import InvalidInputError
from .schema import FieldType, Schema

_TYPES = {
    "String": FieldType.STRING,
    "Number": FieldType.NUMBER,
    "Boolean": FieldType.BOOLEAN,
    "Date": FieldType.DATE,
}


def schema(spec: str) -> Schema:
    """Build a schema from ``"name: String, age?: Number"`` style notation.

    A ``?`` after a field name makes the field optional. Types are
    ``String``, ``Number``, ``Boolean`` and ``Date``. An empty spec gives
    an empty schema.
    """
    if not spec.strip():
        return Schema()
    builder = Schema.builder()
    for entry in spec.split(","):
        name_part, sep, type_part = entry.partition(":")
        if not sep:
            raise InvalidInputError(f"Malformed schema entry: {entry.strip()!r}")
        name = name_part.strip()
        optional = name.endswith("?")
        if optional:
            name = name[:-1].rstrip()
        if not name.isidentifier():
            raise InvalidInputError(f"Invalid field name: {name!r}")
        type_name = type_part.strip()
        field_type = _TYPES.get(type_name)
        if field_type is None:
            raise InvalidInputError(f"Unknown field type: {type_name!r}")
        builder = builder.optional(name, field_type) if optional else builder.field(name, field_type)
    return builder.build()