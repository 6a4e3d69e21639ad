"""Storage backends for registry data: templates, assets, users and organizations."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Iterator, TypeVar

from .entities import MarketplaceMetadata, Organization, TemplateScope, User, VersionedTemplate
from .errors import (
    OrganizationNotFoundError,
    RegistryError,
    RegistryStorageError,
    UserNotFoundError,
    VersionNotFoundError,
)

_T = TypeVar("_T")

_VERSION_FILE = re.compile(r"^\+?([0-9]+)\.json$")
_U64_MAX = 2**64 - 1

# Failures that make a stored record unreadable; such records are skipped when scanning.
_UNREADABLE = (RegistryError, ValueError, TypeError, KeyError, OSError)
_UNPARSABLE = (ValueError, TypeError, KeyError)


class RegistryStorage(ABC):
    """Everything the template registry needs to persist."""

    @abstractmethod
    def save_versioned_template(self, template: VersionedTemplate) -> None:
        """Store one version of a template."""

    @abstractmethod
    def get_versioned_template(self, template_id: str, version: int) -> VersionedTemplate:
        """Load one version of a template."""

    @abstractmethod
    def list_template_versions(self, template_id: str) -> list[int]:
        """All stored version numbers of a template, ascending."""

    @abstractmethod
    def delete_template_version(self, template_id: str, version: int) -> None:
        """Remove one version of a template, if present."""

    @abstractmethod
    def save_template_asset(self, template_id: str, path: str, content: bytes) -> None:
        """Store an extra file (font, image, ...) for a template."""

    @abstractmethod
    def get_template_asset(self, template_id: str, path: str) -> bytes:
        """Load an extra file of a template."""

    @abstractmethod
    def list_template_assets(self, template_id: str) -> list[str]:
        """Relative paths of all extra files of a template."""

    @abstractmethod
    def save_user(self, user: User) -> None:
        """Store a user."""

    @abstractmethod
    def get_user(self, user_id: str) -> User:
        """Load a user by id."""

    @abstractmethod
    def get_user_by_username(self, username: str) -> User:
        """Load a user by their unique username."""

    @abstractmethod
    def list_users(self) -> list[User]:
        """All stored users."""

    @abstractmethod
    def delete_user(self, user_id: str) -> None:
        """Remove a user, if present."""

    @abstractmethod
    def save_organization(self, org: Organization) -> None:
        """Store an organization."""

    @abstractmethod
    def get_organization(self, org_id: str) -> Organization:
        """Load an organization by id."""

    @abstractmethod
    def list_organizations(self) -> list[Organization]:
        """All stored organizations."""

    @abstractmethod
    def delete_organization(self, org_id: str) -> None:
        """Remove an organization, if present."""

    @abstractmethod
    def list_templates_by_scope(self, scope: TemplateScope) -> list[tuple[str, int]]:
        """(template id, version) pairs of every version stored with ``scope``."""

    @abstractmethod
    def search_templates(self, query: str, user_id: str) -> list[tuple[str, int]]:
        """(template id, version) pairs whose name or description contains ``query``."""

    @abstractmethod
    def can_user_access(self, template_id: str, version: int, user_id: str) -> bool:
        """Whether a user may read a template version."""

    @abstractmethod
    def update_marketplace_metadata(
        self, template_id: str, version: int, metadata: MarketplaceMetadata
    ) -> None:
        """Attach marketplace metadata to a template version."""

    @abstractmethod
    def get_marketplace_metadata(self, template_id: str, version: int) -> MarketplaceMetadata:
        """Marketplace metadata of a template version."""


def _write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


class FileSystemStorage(RegistryStorage):
    """Registry storage in a directory tree of JSON files.

    Layout below ``base_path``::

        templates/<template_id>/versions/<n>.json
        templates/<template_id>/assets/...
        users/<user_id>.json
        organizations/<org_id>.json
    """

    def __init__(self, base_path: str | Path) -> None:
        self.base_path = Path(base_path)
        for name in ("templates", "users", "organizations"):
            (self.base_path / name).mkdir(parents=True, exist_ok=True)

    @property
    def _templates_dir(self) -> Path:
        return self.base_path / "templates"

    @property
    def _users_dir(self) -> Path:
        return self.base_path / "users"

    @property
    def _orgs_dir(self) -> Path:
        return self.base_path / "organizations"

    def _template_dir(self, template_id: str) -> Path:
        return self._templates_dir / template_id

    def _versions_dir(self, template_id: str) -> Path:
        return self._template_dir(template_id) / "versions"

    def _version_file(self, template_id: str, version: int) -> Path:
        return self._versions_dir(template_id) / f"{version}.json"

    def _assets_dir(self, template_id: str) -> Path:
        return self._template_dir(template_id) / "assets"

    def _user_file(self, user_id: str) -> Path:
        return self._users_dir / f"{user_id}.json"

    def _org_file(self, org_id: str) -> Path:
        return self._orgs_dir / f"{org_id}.json"

    # --- templates ---

    def save_versioned_template(self, template: VersionedTemplate) -> None:
        versions_dir = self._versions_dir(template.template.id)
        versions_dir.mkdir(parents=True, exist_ok=True)
        _write_json(self._version_file(template.template.id, template.version), template.to_json())

    def get_versioned_template(self, template_id: str, version: int) -> VersionedTemplate:
        path = self._version_file(template_id, version)
        if not path.exists():
            raise VersionNotFoundError(template_id, version)
        return VersionedTemplate.from_json(json.loads(path.read_text(encoding="utf-8")))

    def list_template_versions(self, template_id: str) -> list[int]:
        versions_dir = self._versions_dir(template_id)
        if not versions_dir.exists():
            return []
        versions = []
        for entry in versions_dir.iterdir():
            match = _VERSION_FILE.match(entry.name)
            if match is not None:
                number = int(match.group(1))
                if number <= _U64_MAX:
                    versions.append(number)
        return sorted(versions)

    def delete_template_version(self, template_id: str, version: int) -> None:
        self._version_file(template_id, version).unlink(missing_ok=True)

    def save_template_asset(self, template_id: str, path: str, content: bytes) -> None:
        asset_path = self._assets_dir(template_id) / path
        asset_path.parent.mkdir(parents=True, exist_ok=True)
        asset_path.write_bytes(content)

    def get_template_asset(self, template_id: str, path: str) -> bytes:
        asset_path = self._assets_dir(template_id) / path
        try:
            return asset_path.read_bytes()
        except OSError as exc:
            raise RegistryStorageError(f"Failed to read asset {asset_path}: {exc}") from exc

    def list_template_assets(self, template_id: str) -> list[str]:
        assets_dir = self._assets_dir(template_id)
        if not assets_dir.exists():
            return []
        return sorted(path.relative_to(assets_dir).as_posix() for path in self._walk_files(assets_dir))

    def _walk_files(self, directory: Path) -> Iterator[Path]:
        for entry in directory.iterdir():
            if entry.is_dir():
                yield from self._walk_files(entry)
            else:
                yield entry

    # --- users ---

    def save_user(self, user: User) -> None:
        _write_json(self._user_file(user.id), user.to_json())

    def get_user(self, user_id: str) -> User:
        path = self._user_file(user_id)
        if not path.exists():
            raise UserNotFoundError(user_id)
        return User.from_json(json.loads(path.read_text(encoding="utf-8")))

    def get_user_by_username(self, username: str) -> User:
        for user in self._scan(self._users_dir, User.from_json):
            if user.username == username:
                return user
        raise UserNotFoundError(username)

    def list_users(self) -> list[User]:
        return list(self._scan(self._users_dir, User.from_json))

    def delete_user(self, user_id: str) -> None:
        self._user_file(user_id).unlink(missing_ok=True)

    # --- organizations ---

    def save_organization(self, org: Organization) -> None:
        _write_json(self._org_file(org.id), org.to_json())

    def get_organization(self, org_id: str) -> Organization:
        path = self._org_file(org_id)
        if not path.exists():
            raise OrganizationNotFoundError(org_id)
        return Organization.from_json(json.loads(path.read_text(encoding="utf-8")))

    def list_organizations(self) -> list[Organization]:
        return list(self._scan(self._orgs_dir, Organization.from_json))

    def delete_organization(self, org_id: str) -> None:
        self._org_file(org_id).unlink(missing_ok=True)

    def _scan(self, directory: Path, parse: Callable[[Any], _T]) -> Iterator[_T]:
        """Parse every regular file in ``directory``, skipping unparsable ones."""
        if not directory.exists():
            return
        for entry in sorted(directory.iterdir()):
            if not entry.is_file():
                continue
            content = entry.read_text(encoding="utf-8")
            try:
                yield parse(json.loads(content))
            except _UNPARSABLE:
                continue

    # --- discovery and access ---

    def _all_versions(self) -> Iterator[VersionedTemplate]:
        """Every readable stored template version."""
        if not self._templates_dir.exists():
            return
        for entry in sorted(self._templates_dir.iterdir()):
            if not entry.is_dir():
                continue
            template_id = entry.name
            for version in self.list_template_versions(template_id):
                try:
                    yield self.get_versioned_template(template_id, version)
                except _UNREADABLE:
                    continue

    def list_templates_by_scope(self, scope: TemplateScope) -> list[tuple[str, int]]:
        return [
            (versioned.template.id, versioned.version)
            for versioned in self._all_versions()
            if versioned.scope == scope
        ]

    def search_templates(self, query: str, user_id: str) -> list[tuple[str, int]]:
        needle = query.lower()
        results = []
        for versioned in self._all_versions():
            template = versioned.template
            description = template.description
            if needle in template.name.lower() or (
                description is not None and needle in description.lower()
            ):
                results.append((template.id, versioned.version))
        return results

    def can_user_access(self, template_id: str, version: int, user_id: str) -> bool:
        template = self.get_versioned_template(template_id, version)
        user = self.get_user(user_id)
        return template.can_access(user)

    # --- marketplace ---

    def update_marketplace_metadata(
        self, template_id: str, version: int, metadata: MarketplaceMetadata
    ) -> None:
        template = self.get_versioned_template(template_id, version)
        self.save_versioned_template(template.with_marketplace_metadata(metadata))

    def get_marketplace_metadata(self, template_id: str, version: int) -> MarketplaceMetadata:
        template = self.get_versioned_template(template_id, version)
        if template.marketplace_metadata is None:
            raise RegistryStorageError(
                f"No marketplace metadata for template {template_id} version {version}"
            )
        return template.marketplace_metadata