"""Template registry: versioned publishing, access control and forking."""

from __future__ import annotations

import dataclasses

from .entities import TemplateScope, User, VersionedTemplate
from .errors import AccessDeniedError, TemplateNotFoundError
from .storage import RegistryStorage
from .template import Template, _now


class DefaultRegistry:
    """A template registry backed by any ``RegistryStorage``."""

    def __init__(self, storage: RegistryStorage) -> None:
        self.storage = storage

    # --- template lifecycle ---

    def publish_template(self, template: Template, author: str, scope: TemplateScope) -> int:
        """Publish ``template`` as its next version and return that version number.

        The first version of a template is 1; later ones count up from the latest.
        """
        try:
            next_version = self.get_latest_version(template.id) + 1
        except TemplateNotFoundError:
            next_version = 1
        versioned = VersionedTemplate.create(template, next_version, scope, author)
        self.storage.save_versioned_template(versioned)
        return next_version

    def get_template(self, template_id: str, version: int | None = None) -> VersionedTemplate:
        """Load a template version; the latest one when ``version`` is None."""
        if version is None:
            version = self.get_latest_version(template_id)
        return self.storage.get_versioned_template(template_id, version)

    def get_latest_version(self, template_id: str) -> int:
        """The highest published version number of a template."""
        versions = self.storage.list_template_versions(template_id)
        if not versions:
            raise TemplateNotFoundError(template_id)
        return max(versions)

    def list_versions(self, template_id: str) -> list[int]:
        """All published version numbers of a template, ascending."""
        return self.storage.list_template_versions(template_id)

    # --- access control ---

    def can_access(self, template_id: str, version: int, user_id: str) -> bool:
        """Whether the user may read the given template version."""
        template = self.storage.get_versioned_template(template_id, version)
        user = self.storage.get_user(user_id)
        return template.can_access(user)

    # --- forking ---

    def fork_template(
        self,
        source_id: str,
        source_version: int,
        new_id: str,
        user_id: str,
        new_scope: TemplateScope,
    ) -> int:
        """Copy a template version under ``new_id``, attributed to its source.

        Forks always start at version 1, which is returned.
        """
        if not self.can_access(source_id, source_version, user_id):
            raise AccessDeniedError(
                f"Cannot access template {source_id} version {source_version}"
            )
        source = self.storage.get_versioned_template(source_id, source_version)
        new_template = dataclasses.replace(source.template, id=new_id, updated_at=_now())
        versioned = VersionedTemplate.forked(
            new_template, 1, new_scope, user_id, (source_id, source_version)
        )
        self.storage.save_versioned_template(versioned)
        return 1

    # --- users ---

    def save_user(self, user: User) -> None:
        self.storage.save_user(user)

    def get_user(self, user_id: str) -> User:
        return self.storage.get_user(user_id)

    def get_user_by_username(self, username: str) -> User:
        return self.storage.get_user_by_username(username)

    # --- discovery ---

    def list_user_templates(self, user_id: str) -> list[tuple[str, int]]:
        """(template id, version) pairs private to the user."""
        return self.storage.list_templates_by_scope(TemplateScope.user(user_id))

    def list_org_templates(self, org_id: str, user_id: str) -> list[tuple[str, int]]:
        """(template id, version) pairs shared within the organization."""
        return self.storage.list_templates_by_scope(TemplateScope.organization(org_id))

    def list_public_templates(self) -> list[tuple[str, int]]:
        return self.storage.list_templates_by_scope(TemplateScope.public())

    def list_marketplace_templates(self) -> list[tuple[str, int]]:
        return self.storage.list_templates_by_scope(TemplateScope.marketplace())