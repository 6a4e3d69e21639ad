"""Templates: content plus the schema of the data they are rendered with."""

from __future__ import annotations

import dataclasses
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import TemplateError
from .schema import Schema

_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def _format_timestamp(moment: datetime) -> str:
    """Format a datetime as an RFC 3339 UTC timestamp."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.astimezone(timezone.utc).isoformat()
    return text.replace("+00:00", "Z")


def _parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp; sub-microsecond digits are dropped."""
    match = _RFC3339.match(text)
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp: {text!r}")
    date, clock, fraction, offset = match.groups()
    if offset in ("Z", "z"):
        offset = "+00:00"
    fraction_part = f".{fraction[:6].ljust(6, '0')}" if fraction else ""
    return datetime.fromisoformat(f"{date}T{clock}{fraction_part}{offset}")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclasses.dataclass
class Template:
    """A document template with its data schema and timestamps."""

    id: str
    name: str
    content: str
    schema: Schema = dataclasses.field(default_factory=Schema)
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        now = _now()
        if self.created_at is None:
            self.created_at = now
        if self.updated_at is None:
            self.updated_at = now

    @staticmethod
    def builder(template_id: str) -> TemplateBuilder:
        return TemplateBuilder(template_id)

    def with_description(self, description: str) -> Template:
        """Return a copy of this template with the given description."""
        return dataclasses.replace(self, description=description)

    def validate_data(self, data: Any) -> None:
        """Raise SchemaValidationError unless ``data`` matches the schema."""
        self.schema.validate(data)

    @staticmethod
    def from_file_content(template_id: str, content: str) -> Template:
        """Build a template from text with a ``---`` delimited front matter block.

        The front matter itself is not interpreted: the template gets an
        empty name and an empty schema.
        """
        parts = content.split("---")
        if len(parts) < 3:
            raise TemplateError(
                "Invalid template format. Expected frontmatter between '---' markers."
            )
        return Template(
            id=template_id,
            name="",
            content=parts[2].strip(),
            schema=Schema(),
        )

    @staticmethod
    def from_file(path: str | Path) -> Template:
        """Read a template file; its id is the file name without extension."""
        path = Path(path)
        content = path.read_text(encoding="utf-8")
        return Template.from_file_content(path.stem, content)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "content": self.content,
            "schema": self.schema.to_json(),
            "description": self.description,
            "created_at": _format_timestamp(self.created_at),
            "updated_at": _format_timestamp(self.updated_at),
        }

    @staticmethod
    def from_json(data: dict[str, Any]) -> Template:
        try:
            return Template(
                id=data["id"],
                name=data["name"],
                content=data["content"],
                schema=Schema.from_json(data["schema"]),
                description=data.get("description"),
                created_at=_parse_timestamp(data["created_at"]),
                updated_at=_parse_timestamp(data["updated_at"]),
            )
        except KeyError as exc:
            raise ValueError(f"missing field {exc.args[0]!r}") from None


class TemplateBuilder:
    """Fluent builder for templates; name and content are required."""

    def __init__(self, template_id: str) -> None:
        self._id = template_id
        self._name: str | None = None
        self._content: str | None = None
        self._schema: Schema | None = None
        self._description: str | None = None

    def name(self, name: str) -> TemplateBuilder:
        self._name = name
        return self

    def content(self, content: str) -> TemplateBuilder:
        self._content = content
        return self

    def content_from_file(self, path: str | Path) -> TemplateBuilder:
        """Use the text of the file at ``path`` as the template content."""
        self._content = Path(path).read_text(encoding="utf-8")
        return self

    def schema(self, schema: Schema) -> TemplateBuilder:
        self._schema = schema
        return self

    def description(self, description: str) -> TemplateBuilder:
        self._description = description
        return self

    def build(self) -> Template:
        if self._name is None:
            raise TemplateError("Template name is required")
        if self._content is None:
            raise TemplateError("Template content is required")
        return Template(
            id=self._id,
            name=self._name,
            content=self._content,
            schema=self._schema if self._schema is not None else Schema(),
            description=self._description,
        )