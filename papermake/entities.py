"""Users, organizations, access scopes and versioned templates of the registry."""

from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from .template import Template, _format_timestamp, _now, _parse_timestamp


def _field(data: Any, key: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"expected an object, got {type(data).__name__}")
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field '{key}'") from None


def _non_negative(value: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{what} must be a non-negative integer, got {value!r}")
    return value


@dataclasses.dataclass
class User:
    """A registry user and the organizations they belong to."""

    id: str
    username: str
    email: str
    organizations: list[str] = dataclasses.field(default_factory=list)
    created_at: datetime = dataclasses.field(default_factory=_now)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.updated_at is None:
            self.updated_at = self.created_at

    @staticmethod
    def create(username: str, email: str) -> User:
        """Create a user with a freshly generated id."""
        return User(id=str(uuid.uuid4()), username=username, email=email)

    @staticmethod
    def with_id(user_id: str, username: str, email: str) -> User:
        """Create a user with the given id."""
        return User(id=user_id, username=username, email=email)

    def add_to_organization(self, org_id: str) -> None:
        """Add the user to an organization; joining twice has no effect."""
        if org_id not in self.organizations:
            self.organizations.append(org_id)
            self.updated_at = _now()

    def is_member_of(self, org_id: str) -> bool:
        return org_id in self.organizations

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "organizations": list(self.organizations),
            "created_at": _format_timestamp(self.created_at),
            "updated_at": _format_timestamp(self.updated_at),
        }

    @staticmethod
    def from_json(data: dict[str, Any]) -> User:
        return User(
            id=_field(data, "id"),
            username=_field(data, "username"),
            email=_field(data, "email"),
            organizations=list(_field(data, "organizations")),
            created_at=_parse_timestamp(_field(data, "created_at")),
            updated_at=_parse_timestamp(_field(data, "updated_at")),
        )


@dataclasses.dataclass
class Organization:
    """A group of users that can share templates."""

    id: str
    name: str
    description: str | None = None
    created_at: datetime = dataclasses.field(default_factory=_now)

    @staticmethod
    def create(name: str) -> Organization:
        """Create an organization with a freshly generated id."""
        return Organization(id=str(uuid.uuid4()), name=name)

    @staticmethod
    def with_id(org_id: str, name: str) -> Organization:
        """Create an organization with the given id."""
        return Organization(id=org_id, name=name)

    def with_description(self, description: str) -> Organization:
        """Return a copy with the given description."""
        return dataclasses.replace(self, description=description)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": _format_timestamp(self.created_at),
        }

    @staticmethod
    def from_json(data: dict[str, Any]) -> Organization:
        return Organization(
            id=_field(data, "id"),
            name=_field(data, "name"),
            description=data.get("description"),
            created_at=_parse_timestamp(_field(data, "created_at")),
        )


class ScopeKind(Enum):
    """Visibility levels of a template."""

    USER = "User"
    ORGANIZATION = "Organization"
    PUBLIC = "Public"
    MARKETPLACE = "Marketplace"


_OWNED_KINDS = {ScopeKind.USER, ScopeKind.ORGANIZATION}


@dataclasses.dataclass(frozen=True)
class TemplateScope:
    """Who may see a template: one user, one organization, everyone, or the marketplace."""

    kind: ScopeKind
    owner: str | None = None

    def __post_init__(self) -> None:
        if self.kind in _OWNED_KINDS:
            if self.owner is None:
                raise ValueError(f"a {self.kind.value} scope needs an owner id")
        elif self.owner is not None:
            raise ValueError(f"a {self.kind.value} scope takes no owner id")

    @staticmethod
    def user(user_id: str) -> TemplateScope:
        return TemplateScope(ScopeKind.USER, user_id)

    @staticmethod
    def organization(org_id: str) -> TemplateScope:
        return TemplateScope(ScopeKind.ORGANIZATION, org_id)

    @staticmethod
    def public() -> TemplateScope:
        return TemplateScope(ScopeKind.PUBLIC)

    @staticmethod
    def marketplace() -> TemplateScope:
        return TemplateScope(ScopeKind.MARKETPLACE)

    def _owned_by(self, user: User) -> bool:
        if self.kind is ScopeKind.USER:
            return user.id == self.owner
        return user.is_member_of(self.owner)

    def can_access(self, user: User) -> bool:
        """Whether ``user`` may read templates in this scope."""
        if self.kind in _OWNED_KINDS:
            return self._owned_by(user)
        return True

    def can_modify(self, user: User) -> bool:
        """Whether ``user`` may change this scope; public scopes are final."""
        if self.kind in _OWNED_KINDS:
            return self._owned_by(user)
        return False

    def to_json(self) -> Any:
        if self.kind in _OWNED_KINDS:
            return {self.kind.value: self.owner}
        return self.kind.value

    @staticmethod
    def from_json(data: Any) -> TemplateScope:
        if isinstance(data, str):
            try:
                kind = ScopeKind(data)
            except ValueError:
                raise ValueError(f"unknown template scope '{data}'") from None
            if kind in _OWNED_KINDS:
                raise ValueError(f"template scope '{data}' needs an owner id")
            return TemplateScope(kind)
        if isinstance(data, dict) and len(data) == 1:
            (tag, owner), = data.items()
            if tag in (ScopeKind.USER.value, ScopeKind.ORGANIZATION.value) and isinstance(owner, str):
                return TemplateScope(ScopeKind(tag), owner)
        raise ValueError(f"unknown template scope {data!r}")


@dataclasses.dataclass
class MarketplaceMetadata:
    """Listing details for a template offered in the marketplace."""

    title: str
    description: str
    category: str
    author_name: str
    tags: list[str] = dataclasses.field(default_factory=list)
    price_cents: int = 0
    preview_urls: list[str] = dataclasses.field(default_factory=list)
    license: str = "MIT"

    def __post_init__(self) -> None:
        _non_negative(self.price_cents, "price_cents")

    def with_tags(self, tags: list[str]) -> MarketplaceMetadata:
        return dataclasses.replace(self, tags=list(tags))

    def with_price(self, price_cents: int) -> MarketplaceMetadata:
        return dataclasses.replace(self, price_cents=price_cents)

    def with_previews(self, urls: list[str]) -> MarketplaceMetadata:
        return dataclasses.replace(self, preview_urls=list(urls))

    def to_json(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags),
            "price_cents": self.price_cents,
            "preview_urls": list(self.preview_urls),
            "author_name": self.author_name,
            "license": self.license,
        }

    @staticmethod
    def from_json(data: dict[str, Any]) -> MarketplaceMetadata:
        return MarketplaceMetadata(
            title=_field(data, "title"),
            description=_field(data, "description"),
            category=_field(data, "category"),
            author_name=_field(data, "author_name"),
            tags=list(_field(data, "tags")),
            price_cents=_field(data, "price_cents"),
            preview_urls=list(_field(data, "preview_urls")),
            license=_field(data, "license"),
        )


@dataclasses.dataclass
class VersionedTemplate:
    """A published, numbered version of a template with its scope and author."""

    template: Template
    version: int
    scope: TemplateScope
    author: str
    forked_from: tuple[str, int] | None = None
    published_at: datetime = dataclasses.field(default_factory=_now)
    immutable: bool = True
    marketplace_metadata: MarketplaceMetadata | None = None

    def __post_init__(self) -> None:
        _non_negative(self.version, "version")
        if self.forked_from is not None:
            source_id, source_version = self.forked_from
            self.forked_from = (source_id, _non_negative(source_version, "fork source version"))

    @staticmethod
    def create(template: Template, version: int, scope: TemplateScope, author: str) -> VersionedTemplate:
        """A newly published version; published versions are immutable."""
        return VersionedTemplate(template=template, version=version, scope=scope, author=author)

    @staticmethod
    def forked(
        template: Template,
        version: int,
        scope: TemplateScope,
        author: str,
        source: tuple[str, int],
    ) -> VersionedTemplate:
        """A version created by forking ``source``, a (template id, version) pair."""
        return VersionedTemplate(
            template=template,
            version=version,
            scope=scope,
            author=author,
            forked_from=tuple(source),
        )

    def can_access(self, user: User) -> bool:
        return self.scope.can_access(user)

    def id(self) -> str:
        """The id of the underlying template."""
        return self.template.id

    def with_marketplace_metadata(self, metadata: MarketplaceMetadata) -> VersionedTemplate:
        return dataclasses.replace(self, marketplace_metadata=metadata)

    def to_json(self) -> dict[str, Any]:
        return {
            "template": self.template.to_json(),
            "version": self.version,
            "scope": self.scope.to_json(),
            "author": self.author,
            "forked_from": list(self.forked_from) if self.forked_from is not None else None,
            "published_at": _format_timestamp(self.published_at),
            "immutable": self.immutable,
            "marketplace_metadata": (
                self.marketplace_metadata.to_json() if self.marketplace_metadata is not None else None
            ),
        }

    @staticmethod
    def from_json(data: dict[str, Any]) -> VersionedTemplate:
        forked = data.get("forked_from") if isinstance(data, dict) else None
        if forked is not None:
            if not isinstance(forked, (list, tuple)) or len(forked) != 2:
                raise ValueError(f"invalid fork source {forked!r}")
            forked = (forked[0], forked[1])
        metadata = data.get("marketplace_metadata")
        return VersionedTemplate(
            template=Template.from_json(_field(data, "template")),
            version=_field(data, "version"),
            scope=TemplateScope.from_json(_field(data, "scope")),
            author=_field(data, "author"),
            forked_from=forked,
            published_at=_parse_timestamp(_field(data, "published_at")),
            immutable=_field(data, "immutable"),
            marketplace_metadata=MarketplaceMetadata.from_json(metadata) if metadata is not None else None,
        )