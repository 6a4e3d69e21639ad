# papermake

Document templates with a data schema, and a file-backed registry that
versions templates and controls who may use them.

## Install

```
pip install papermake
```

The package has no runtime dependencies. Tests need `pytest`
(`pip install papermake[test]`).

## Schemas

`papermake.schema` declares what data a template expects and checks data
against it:

```python
from papermake.schema import FieldType, Schema
from papermake.errors import SchemaValidationError

schema = (
    Schema.builder()
    .field("name", FieldType.STRING)
    .optional("age", FieldType.NUMBER)
    .build()
)

schema.validate({"name": "John Doe", "age": 30})   # passes

try:
    schema.validate({"age": 30})
except SchemaValidationError as exc:
    print(exc)   # Schema validation error: Required field 'name' is missing
```

Field types are `FieldType.STRING`, `FieldType.NUMBER`, `FieldType.BOOLEAN`
and `FieldType.DATE` (any string is accepted as a date), plus
`FieldType.object(sub_schema)` and `FieldType.array(item_type)` for nested
data. Validation stops at the first problem; errors for array items name the
position, as in `Field 'items[2]' must be a number`.

The builder also has `required`, `field_with_label`,
`field_with_description` and `optional_with_default`. A `Schema` can also be
assembled from `SchemaField` objects with `add_field`.

`papermake.macros.schema` builds the same kind of schema from a compact
notation; a `?` after a name makes the field optional:

```python
from papermake.macros import schema

compact = schema("name: String, age?: Number, active: Boolean")
```

Malformed entries, invalid names and unknown types raise
`InvalidInputError`.

## Templates

```python
from papermake.template import Template

template = (
    Template.builder("invoice")
    .name("Invoice Template")
    .content("#let data = json.decode(sys.inputs.data)\nInvoice for #data.name")
    .schema(compact)
    .build()
)
template.validate_data({"name": "ACME Corp", "active": True})
```

`build()` raises `TemplateError` when the name or the content is missing;
the schema defaults to an empty one. `content_from_file(path)` reads the
content from a file.

`Template.from_file(path)` reads a file with a `---` delimited header and
takes the text after the second marker as the content; the id is the file
name without its extension. The header itself is not interpreted, so the
name is empty and the schema is empty. `Template.from_file_content(id, text)`
does the same for text already in memory.

Schemas, templates and the registry entities all convert to and from plain
JSON-compatible data with `to_json()` and `from_json()`; timestamps are
written as RFC 3339 UTC strings.

## Registry

The registry stores every published template as an immutable, numbered
version (1, 2, 3, ...). Each version has a scope: private to a user
(`TemplateScope.user(id)`), shared with an organization
(`TemplateScope.organization(id)`), public (`TemplateScope.public()`), or in
the marketplace (`TemplateScope.marketplace()`).

```python
from papermake.entities import TemplateScope, User
from papermake.registry import DefaultRegistry
from papermake.storage import FileSystemStorage

registry = DefaultRegistry(FileSystemStorage("./templates"))

alice = User.create("alice", "alice@example.com")
registry.save_user(alice)

version = registry.publish_template(template, alice.id, TemplateScope.user(alice.id))
stored = registry.get_template("invoice", version)
assert registry.can_access("invoice", version, alice.id)
```

`get_template(id)` without a version returns the latest one;
`get_latest_version` and `list_versions` report the version numbers. A
template with no versions raises `TemplateNotFoundError`; a missing version
raises `VersionNotFoundError`.

Anyone who can access a template version can fork it into an independent
copy that records where it came from. Forks always start at version 1:

```python
bob = User.create("bob", "bob@example.com")
registry.save_user(bob)

public = registry.publish_template(template, alice.id, TemplateScope.public())
registry.fork_template("invoice", public, "bobs-invoice", bob.id, TemplateScope.user(bob.id))
registry.get_template("bobs-invoice", 1).forked_from   # ("invoice", 2)
```

Forking a version the user cannot access raises `AccessDeniedError`.

Discovery: `list_user_templates`, `list_org_templates`,
`list_public_templates` and `list_marketplace_templates` return
`(template_id, version)` pairs for every stored version with that exact
scope.

Users join organizations with `User.add_to_organization(org_id)`; members can
access templates in that organization's scope. Public and marketplace scopes
are readable by everyone and `TemplateScope.can_modify` is false for them.

## Storage

`FileSystemStorage` implements the abstract `RegistryStorage` and keeps
everything as JSON files under its base directory:

```
templates/<id>/versions/<n>.json
templates/<id>/assets/...
users/<id>.json
organizations/<id>.json
```

Besides what the registry uses, it offers template assets
(`save_template_asset`, `get_template_asset`, `list_template_assets`),
organizations (`save_organization`, `get_organization`,
`list_organizations`, `delete_organization`), `list_users`, `delete_user`,
`delete_template_version`, a case-insensitive name and description search
(`search_templates`), and `MarketplaceMetadata` attached to a version
(`update_marketplace_metadata`, `get_marketplace_metadata`). Records that
cannot be parsed are skipped when scanning.

## Errors

Template and schema problems raise subclasses of
`papermake.errors.PapermakeError` (`TemplateError`, `SchemaValidationError`,
`InvalidInputError`, ...); registry problems raise subclasses of
`papermake.errors.RegistryError`, such as `TemplateNotFoundError`,
`VersionNotFoundError`, `AccessDeniedError`, `UserNotFoundError`,
`OrganizationNotFoundError` and `RegistryStorageError`. Failures reading
files surface as the built-in `OSError`.

## What it does not do

- Templates are stored and their data is validated, but nothing renders a
  template to a PDF or any other output.
- There is no HTTP server, background worker or command-line program; the
  package is a library.
- `DefaultRegistry` does not delete templates, share them with an
  organization, make them public or submit them to the marketplace after
  publishing, and has no search or organization management of its own; the
  storage methods above are the only way to reach those records.
- Storage is local files only, with no locking between processes.