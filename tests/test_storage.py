import json

import pytest

from papermake.entities import (
    MarketplaceMetadata,
    Organization,
    TemplateScope,
    User,
    VersionedTemplate,
)
from papermake.errors import (
    OrganizationNotFoundError,
    RegistryStorageError,
    UserNotFoundError,
    VersionNotFoundError,
)
from papermake.storage import FileSystemStorage, RegistryStorage
from papermake.template import Template


@pytest.fixture
def storage(tmp_path):
    return FileSystemStorage(tmp_path)


def _versioned(template_id, version, scope, author="alice", name="Test Template", description=None):
    template = Template(id=template_id, name=name, content="Hello", description=description)
    return VersionedTemplate.create(template, version, scope, author)


def test_registry_storage_is_abstract():
    with pytest.raises(TypeError):
        RegistryStorage()


def test_init_creates_directories(tmp_path):
    FileSystemStorage(tmp_path / "root")
    assert sorted(p.name for p in (tmp_path / "root").iterdir()) == [
        "organizations",
        "templates",
        "users",
    ]


def test_versioned_template_round_trip(storage, tmp_path):
    versioned = _versioned("t1", 1, TemplateScope.user("alice"))
    storage.save_versioned_template(versioned)
    assert storage.get_versioned_template("t1", 1) == versioned
    stored = tmp_path / "templates" / "t1" / "versions" / "1.json"
    assert json.loads(stored.read_text()) == versioned.to_json()


def test_forked_template_round_trip(storage):
    template = Template(id="fork", name="Fork", content="x")
    versioned = VersionedTemplate.forked(template, 1, TemplateScope.public(), "bob", ("orig", 3))
    storage.save_versioned_template(versioned)
    loaded = storage.get_versioned_template("fork", 1)
    assert loaded.forked_from == ("orig", 3)
    assert loaded.author == "bob"


def test_missing_version_raises(storage):
    with pytest.raises(VersionNotFoundError) as info:
        storage.get_versioned_template("nothing", 7)
    assert info.value.template_id == "nothing"
    assert info.value.version == 7


def test_list_versions_sorted_and_filtered(storage, tmp_path):
    for version in (3, 1, 2):
        storage.save_versioned_template(_versioned("t", version, TemplateScope.public()))
    versions_dir = tmp_path / "templates" / "t" / "versions"
    (versions_dir / "notes.json").write_text("{}")
    (versions_dir / "4.txt").write_text("x")
    assert storage.list_template_versions("t") == [1, 2, 3]
    assert storage.list_template_versions("unknown") == []


def test_delete_template_version(storage):
    storage.save_versioned_template(_versioned("t", 1, TemplateScope.public()))
    storage.save_versioned_template(_versioned("t", 2, TemplateScope.public()))
    storage.delete_template_version("t", 1)
    storage.delete_template_version("t", 99)
    assert storage.list_template_versions("t") == [2]


def test_assets(storage):
    storage.save_template_asset("t", "fonts/a.ttf", b"\x00\x01")
    storage.save_template_asset("t", "logo.png", b"png")
    assert storage.get_template_asset("t", "fonts/a.ttf") == b"\x00\x01"
    assert storage.list_template_assets("t") == ["fonts/a.ttf", "logo.png"]
    assert storage.list_template_assets("other") == []


def test_missing_asset_raises(storage):
    with pytest.raises(RegistryStorageError) as info:
        storage.get_template_asset("t", "missing.png")
    assert "Failed to read asset" in str(info.value)


def test_user_round_trip_and_lookup(storage):
    user = User.with_id("alice", "alice", "alice@example.com")
    storage.save_user(user)
    assert storage.get_user("alice") == user
    assert storage.get_user_by_username("alice") == user
    with pytest.raises(UserNotFoundError):
        storage.get_user("bob")
    with pytest.raises(UserNotFoundError):
        storage.get_user_by_username("bob")


def test_list_users_skips_garbage_and_delete(storage, tmp_path):
    alice = User.with_id("alice", "alice", "alice@example.com")
    bob = User.with_id("bob", "bob", "bob@example.com")
    storage.save_user(alice)
    storage.save_user(bob)
    (tmp_path / "users" / "broken.json").write_text("not json")
    assert sorted(u.id for u in storage.list_users()) == ["alice", "bob"]
    storage.delete_user("alice")
    storage.delete_user("nobody")
    assert [u.id for u in storage.list_users()] == ["bob"]


def test_organizations(storage):
    org = Organization.with_id("acme", "Acme").with_description("Widgets")
    storage.save_organization(org)
    assert storage.get_organization("acme") == org
    assert storage.list_organizations() == [org]
    storage.delete_organization("acme")
    with pytest.raises(OrganizationNotFoundError):
        storage.get_organization("acme")
    assert storage.list_organizations() == []


def test_list_templates_by_scope(storage):
    storage.save_versioned_template(_versioned("a", 1, TemplateScope.user("alice")))
    storage.save_versioned_template(_versioned("a", 2, TemplateScope.public()))
    storage.save_versioned_template(_versioned("b", 1, TemplateScope.user("alice")))
    storage.save_versioned_template(_versioned("c", 1, TemplateScope.user("bob")))
    assert sorted(storage.list_templates_by_scope(TemplateScope.user("alice"))) == [("a", 1), ("b", 1)]
    assert storage.list_templates_by_scope(TemplateScope.public()) == [("a", 2)]
    assert storage.list_templates_by_scope(TemplateScope.marketplace()) == []


def test_search_templates(storage):
    storage.save_versioned_template(_versioned("inv", 1, TemplateScope.public(), name="Invoice Template"))
    storage.save_versioned_template(
        _versioned("rep", 1, TemplateScope.public(), name="Report", description="Monthly INVOICE summary")
    )
    storage.save_versioned_template(_versioned("let", 1, TemplateScope.public(), name="Letter"))
    assert sorted(storage.search_templates("invoice", "alice")) == [("inv", 1), ("rep", 1)]
    assert storage.search_templates("nothing-matches", "alice") == []


def test_can_user_access(storage):
    alice = User.with_id("alice", "alice", "alice@example.com")
    bob = User.with_id("bob", "bob", "bob@example.com")
    storage.save_user(alice)
    storage.save_user(bob)
    storage.save_versioned_template(_versioned("t", 1, TemplateScope.user("alice")))
    assert storage.can_user_access("t", 1, "alice") is True
    assert storage.can_user_access("t", 1, "bob") is False
    with pytest.raises(UserNotFoundError):
        storage.can_user_access("t", 1, "carol")


def test_marketplace_metadata(storage):
    storage.save_versioned_template(_versioned("t", 1, TemplateScope.marketplace()))
    with pytest.raises(RegistryStorageError) as info:
        storage.get_marketplace_metadata("t", 1)
    assert "No marketplace metadata" in str(info.value)
    metadata = MarketplaceMetadata("Title", "Desc", "finance", "Alice").with_price(500)
    storage.update_marketplace_metadata("t", 1, metadata)
    assert storage.get_marketplace_metadata("t", 1) == metadata
    with pytest.raises(VersionNotFoundError):
        storage.update_marketplace_metadata("t", 2, metadata)