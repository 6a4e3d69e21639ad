"""Schemas describing the data a template expects, and their validation."""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, Callable, ClassVar

from .errors import SchemaValidationError


class FieldKind(Enum):
    """The kinds of value a schema field can hold."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"


_SCALAR_KINDS = {FieldKind.STRING, FieldKind.NUMBER, FieldKind.BOOLEAN, FieldKind.DATE}


def _require(data: dict, key: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"expected an object, got {type(data).__name__}")
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field '{key}'") from None


@dataclasses.dataclass(frozen=True)
class FieldType:
    """The type of a schema field; objects carry a sub-schema, arrays an item type."""

    kind: FieldKind
    schema: Schema | None = None
    item: FieldType | None = None

    STRING: ClassVar[FieldType]
    NUMBER: ClassVar[FieldType]
    BOOLEAN: ClassVar[FieldType]
    DATE: ClassVar[FieldType]

    def __post_init__(self) -> None:
        if self.kind is FieldKind.OBJECT:
            if self.schema is None or self.item is not None:
                raise ValueError("an object field type needs a schema and no item type")
        elif self.kind is FieldKind.ARRAY:
            if self.item is None or self.schema is not None:
                raise ValueError("an array field type needs an item type and no schema")
        elif self.schema is not None or self.item is not None:
            raise ValueError(f"a {self.kind.value} field type takes no schema or item type")

    @staticmethod
    def object(schema: Schema) -> FieldType:
        """An object whose members follow ``schema``."""
        return FieldType(FieldKind.OBJECT, schema=schema)

    @staticmethod
    def array(item_type: FieldType) -> FieldType:
        """An array whose items are of ``item_type``."""
        return FieldType(FieldKind.ARRAY, item=item_type)

    def to_json(self) -> Any:
        if self.kind is FieldKind.OBJECT:
            return {"object": self.schema.to_json()}
        if self.kind is FieldKind.ARRAY:
            return {"array": self.item.to_json()}
        return self.kind.value

    @staticmethod
    def from_json(data: Any) -> FieldType:
        if isinstance(data, str):
            try:
                kind = FieldKind(data)
            except ValueError:
                raise ValueError(f"unknown field type '{data}'") from None
            if kind not in _SCALAR_KINDS:
                raise ValueError(f"field type '{data}' needs a payload")
            return FieldType(kind)
        if isinstance(data, dict) and len(data) == 1:
            (tag, payload), = data.items()
            if tag == "object":
                return FieldType.object(Schema.from_json(payload))
            if tag == "array":
                return FieldType.array(FieldType.from_json(payload))
        raise ValueError(f"unknown field type {data!r}")


FieldType.STRING = FieldType(FieldKind.STRING)
FieldType.NUMBER = FieldType(FieldKind.NUMBER)
FieldType.BOOLEAN = FieldType(FieldKind.BOOLEAN)
FieldType.DATE = FieldType(FieldKind.DATE)


@dataclasses.dataclass
class SchemaField:
    """One named field of a schema."""

    key: str
    field_type: FieldType
    required: bool = True
    label: str | None = None
    description: str | None = None
    default: Any = None

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "key": self.key,
            "label": self.label,
            "field_type": self.field_type.to_json(),
            "required": self.required,
            "description": self.description,
        }
        if self.default is not None:
            data["default"] = self.default
        return data

    @staticmethod
    def from_json(data: dict[str, Any]) -> SchemaField:
        return SchemaField(
            key=_require(data, "key"),
            field_type=FieldType.from_json(_require(data, "field_type")),
            required=_require(data, "required"),
            label=data.get("label"),
            description=data.get("description"),
            default=data.get("default"),
        )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


_SCALAR_CHECKS: dict[FieldKind, tuple[Callable[[Any], bool], str]] = {
    FieldKind.STRING: (lambda v: isinstance(v, str), "a string"),
    FieldKind.NUMBER: (_is_number, "a number"),
    FieldKind.BOOLEAN: (lambda v: isinstance(v, bool), "a boolean"),
    FieldKind.DATE: (lambda v: isinstance(v, str), "a date string"),
}


@dataclasses.dataclass
class Schema:
    """An ordered list of fields describing the data for a template."""

    fields: list[SchemaField] = dataclasses.field(default_factory=list)

    @staticmethod
    def builder() -> SchemaBuilder:
        return SchemaBuilder()

    def add_field(self, field: SchemaField) -> Schema:
        """Append a field and return the schema for chaining."""
        self.fields.append(field)
        return self

    def validate(self, data: Any) -> None:
        """Raise SchemaValidationError unless ``data`` matches this schema."""
        if not isinstance(data, dict):
            raise SchemaValidationError("Root data must be an object")
        for field in self.fields:
            if field.key in data:
                self._validate_value(field.field_type, data[field.key], field.key)
            elif field.required:
                raise SchemaValidationError(f"Required field '{field.key}' is missing")

    def _validate_value(self, field_type: FieldType, value: Any, path: str) -> None:
        kind = field_type.kind
        if kind in _SCALAR_CHECKS:
            check, description = _SCALAR_CHECKS[kind]
            if not check(value):
                raise SchemaValidationError(f"Field '{path}' must be {description}")
        elif kind is FieldKind.OBJECT:
            if not isinstance(value, dict):
                raise SchemaValidationError(f"Field '{path}' must be an object")
            field_type.schema.validate(value)
        else:
            if not isinstance(value, list):
                raise SchemaValidationError(f"Field '{path}' must be an array")
            for index, item in enumerate(value):
                self._validate_value(field_type.item, item, f"{path}[{index}]")

    def to_json(self) -> dict[str, Any]:
        return {"fields": [field.to_json() for field in self.fields]}

    @staticmethod
    def from_json(data: dict[str, Any]) -> Schema:
        return Schema([SchemaField.from_json(item) for item in _require(data, "fields")])


class SchemaBuilder:
    """Fluent builder for schemas."""

    def __init__(self) -> None:
        self._fields: list[SchemaField] = []

    def _add(self, field: SchemaField) -> SchemaBuilder:
        self._fields.append(field)
        return self

    def field(self, key: str, field_type: FieldType) -> SchemaBuilder:
        """Add a required field."""
        return self._add(SchemaField(key, field_type, required=True))

    def field_with_label(self, key: str, label: str, field_type: FieldType) -> SchemaBuilder:
        """Add a required field with a display label."""
        return self._add(SchemaField(key, field_type, required=True, label=label))

    def required(self, key: str, field_type: FieldType) -> SchemaBuilder:
        """Add a required field."""
        return self.field(key, field_type)

    def optional(self, key: str, field_type: FieldType) -> SchemaBuilder:
        """Add an optional field."""
        return self._add(SchemaField(key, field_type, required=False))

    def optional_with_default(self, key: str, field_type: FieldType, default: Any) -> SchemaBuilder:
        """Add an optional field with a default value."""
        return self._add(SchemaField(key, field_type, required=False, default=default))

    def field_with_description(self, key: str, field_type: FieldType, description: str) -> SchemaBuilder:
        """Add a required field with a description."""
        return self._add(SchemaField(key, field_type, required=True, description=description))

    def build(self) -> Schema:
        return Schema(list(self._fields))