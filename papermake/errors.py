"""Exception hierarchy for template handling and the template registry."""

from __future__ import annotations


class _LabelledError(Exception):
    """An exception whose text is a fixed label followed by a detail message."""

    label = ""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        if self.label:
            return f"{self.label}: {self.message}"
        return self.message


class PapermakeError(_LabelledError):
    """Base class for errors raised while defining, validating or loading templates.

    File access failures surface as the built-in ``OSError``.
    """

    label = "Papermake error"


class TemplateError(PapermakeError):
    """A template is malformed or incomplete."""

    label = "Template error"


class SchemaValidationError(PapermakeError):
    """Data does not match a template's schema."""

    label = "Schema validation error"


class RenderingError(PapermakeError):
    """A template could not be rendered."""

    label = "Rendering error"


class StorageError(PapermakeError):
    """Template storage failed."""

    label = "Storage error"


class InvalidInputError(PapermakeError):
    """An argument was not acceptable."""

    label = "Invalid input"


class RegistryError(_LabelledError):
    """Base class for errors raised by the template registry."""

    label = "Registry error"


class TemplateNotFoundError(RegistryError):
    """No template with the given id exists."""

    label = "Template not found"


class _VersionedRegistryError(RegistryError):
    """A registry error that concerns one version of one template."""

    label = ""
    _format = "{template_id} version {version}"

    def __init__(self, template_id: str, version: int) -> None:
        super().__init__(self._format.format(template_id=template_id, version=version))
        self.template_id = template_id
        self.version = version


class VersionNotFoundError(_VersionedRegistryError):
    """The requested version of a template does not exist."""

    _format = "Version {version} not found for template {template_id}"

    def __init__(self, template_id: str, version: int) -> None:
        super().__init__(template_id, version)


class AccessDeniedError(RegistryError):
    """The user may not access the requested resource."""

    label = "Access denied"


class UserNotFoundError(RegistryError):
    """No user with the given id or name exists."""

    label = "User not found"


class OrganizationNotFoundError(RegistryError):
    """No organization with the given id exists."""

    label = "Organization not found"


class TemplateAlreadyExistsError(RegistryError):
    """A template with the given id already exists."""

    label = "Template already exists"


class ImmutableVersionError(_VersionedRegistryError):
    """A published template version cannot be changed."""

    _format = "Cannot modify immutable template version {version} of {template_id}"

    def __init__(self, template_id: str, version: int) -> None:
        super().__init__(template_id, version)


class InvalidScopeError(RegistryError):
    """A template scope is not valid for the requested operation."""

    label = "Invalid template scope"


class ForkSourceNotFoundError(_VersionedRegistryError):
    """The template version to fork from does not exist."""

    _format = "Fork source not found: {template_id} version {version}"

    def __init__(self, template_id: str, version: int) -> None:
        super().__init__(template_id, version)


class RegistryStorageError(RegistryError):
    """The registry's storage backend failed."""

    label = "Storage error"