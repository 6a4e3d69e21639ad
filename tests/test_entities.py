import json
from datetime import datetime, timezone

import pytest

from papermake.entities import (
    MarketplaceMetadata,
    Organization,
    ScopeKind,
    TemplateScope,
    User,
    VersionedTemplate,
)
from papermake.template import Template


@pytest.fixture
def users():
    return (
        User.with_id("alice", "alice", "alice@example.com"),
        User.with_id("bob", "bob", "bob@example.com"),
        User.with_id("charlie", "charlie", "charlie@example.com"),
    )


def _template(template_id="test-template"):
    return (
        Template.builder(template_id)
        .name("Test Template")
        .content("Hello")
        .build()
    )


def test_user_create_generates_unique_ids():
    first = User.create("alice", "alice@example.com")
    second = User.create("alice", "alice@example.com")
    assert first.id != second.id
    assert first.username == "alice"
    assert first.email == "alice@example.com"
    assert first.organizations == []
    assert first.created_at == first.updated_at


def test_user_with_id_keeps_id():
    user = User.with_id("u-1", "bob", "bob@example.com")
    assert user.id == "u-1"
    assert user.username == "bob"


def test_add_to_organization_is_idempotent():
    user = User.with_id("u-1", "bob", "bob@example.com")
    assert not user.is_member_of("org-1")
    user.add_to_organization("org-1")
    user.add_to_organization("org-1")
    assert user.organizations == ["org-1"]
    assert user.is_member_of("org-1")
    assert user.updated_at >= user.created_at


def test_user_json_round_trip():
    user = User.with_id("u-1", "bob", "bob@example.com")
    user.add_to_organization("org-1")
    restored = User.from_json(json.loads(json.dumps(user.to_json())))
    assert restored == user


def test_user_from_json_missing_field():
    with pytest.raises(ValueError):
        User.from_json({"id": "u-1", "username": "bob"})


def test_organization_with_description_returns_copy():
    org = Organization.with_id("org-1", "Acme")
    described = org.with_description("Widgets")
    assert described.description == "Widgets"
    assert org.description is None
    assert described.id == "org-1"


def test_organization_create_and_round_trip():
    org = Organization.create("Acme").with_description("Widgets")
    assert org.name == "Acme"
    assert Organization.from_json(org.to_json()) == org


def test_user_scope_access(users):
    alice, bob, charlie = users
    scope = TemplateScope.user(alice.id)
    assert scope.can_access(alice)
    assert not scope.can_access(bob)
    assert not scope.can_access(charlie)


def test_public_scope_access(users):
    scope = TemplateScope.public()
    assert all(scope.can_access(user) for user in users)


def test_marketplace_scope_access(users):
    scope = TemplateScope.marketplace()
    assert all(scope.can_access(user) for user in users)


def test_organization_scope_access(users):
    alice, bob, _ = users
    alice.add_to_organization("org-1")
    scope = TemplateScope.organization("org-1")
    assert scope.can_access(alice)
    assert not scope.can_access(bob)
    assert scope.can_modify(alice)
    assert not scope.can_modify(bob)


def test_public_scopes_cannot_be_modified(users):
    alice = users[0]
    assert not TemplateScope.public().can_modify(alice)
    assert not TemplateScope.marketplace().can_modify(alice)
    assert TemplateScope.user(alice.id).can_modify(alice)


def test_scope_equality():
    assert TemplateScope.user("a") == TemplateScope.user("a")
    assert TemplateScope.user("a") != TemplateScope.organization("a")
    assert TemplateScope.public().kind is ScopeKind.PUBLIC


@pytest.mark.parametrize(
    "scope, encoded",
    [
        (TemplateScope.user("alice"), {"User": "alice"}),
        (TemplateScope.organization("org"), {"Organization": "org"}),
        (TemplateScope.public(), "Public"),
        (TemplateScope.marketplace(), "Marketplace"),
    ],
)
def test_scope_json(scope, encoded):
    assert scope.to_json() == encoded
    assert TemplateScope.from_json(encoded) == scope


@pytest.mark.parametrize("bad", ["User", "Private", {"Public": "x"}, {"User": 3}, 5])
def test_scope_from_json_rejects(bad):
    with pytest.raises(ValueError):
        TemplateScope.from_json(bad)


def test_scope_requires_owner():
    with pytest.raises(ValueError):
        TemplateScope(ScopeKind.USER)
    with pytest.raises(ValueError):
        TemplateScope(ScopeKind.PUBLIC, "x")


def test_marketplace_metadata_defaults_and_builders():
    meta = MarketplaceMetadata("Invoice", "A neat invoice", "business", "Alice")
    assert meta.license == "MIT"
    assert meta.price_cents == 0
    assert meta.tags == []
    updated = meta.with_tags(["pdf", "invoice"]).with_price(499).with_previews(["preview.png"])
    assert updated.tags == ["pdf", "invoice"]
    assert updated.price_cents == 499
    assert updated.preview_urls == ["preview.png"]
    assert meta.price_cents == 0


def test_marketplace_metadata_rejects_negative_price():
    with pytest.raises(ValueError):
        MarketplaceMetadata("T", "D", "C", "A", price_cents=-1)


def test_marketplace_metadata_round_trip():
    meta = MarketplaceMetadata("Invoice", "Desc", "business", "Alice").with_tags(["x"]).with_price(10)
    assert MarketplaceMetadata.from_json(meta.to_json()) == meta


def test_versioned_template_create(users):
    alice = users[0]
    versioned = VersionedTemplate.create(_template(), 1, TemplateScope.user(alice.id), alice.id)
    assert versioned.version == 1
    assert versioned.immutable is True
    assert versioned.forked_from is None
    assert versioned.marketplace_metadata is None
    assert versioned.id() == "test-template"
    assert versioned.can_access(alice)
    assert not versioned.can_access(users[1])


def test_versioned_template_forked():
    versioned = VersionedTemplate.forked(
        _template("forked-template"), 1, TemplateScope.user("bob"), "bob", ("original-template", 3)
    )
    assert versioned.forked_from == ("original-template", 3)
    assert versioned.id() == "forked-template"
    assert versioned.author == "bob"


def test_versioned_template_with_marketplace_metadata():
    meta = MarketplaceMetadata("T", "D", "C", "A")
    versioned = VersionedTemplate.create(_template(), 2, TemplateScope.marketplace(), "alice")
    with_meta = versioned.with_marketplace_metadata(meta)
    assert with_meta.marketplace_metadata == meta
    assert versioned.marketplace_metadata is None


def test_versioned_template_json_round_trip():
    meta = MarketplaceMetadata("T", "D", "C", "A").with_tags(["a"])
    versioned = VersionedTemplate.forked(
        _template("forked"), 1, TemplateScope.organization("org"), "bob", ("source", 2)
    ).with_marketplace_metadata(meta)
    encoded = json.loads(json.dumps(versioned.to_json()))
    assert encoded["forked_from"] == ["source", 2]
    assert encoded["scope"] == {"Organization": "org"}
    restored = VersionedTemplate.from_json(encoded)
    assert restored == versioned


def test_versioned_template_timestamp_is_rfc3339():
    published = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    versioned = VersionedTemplate(_template(), 1, TemplateScope.public(), "alice", published_at=published)
    assert versioned.to_json()["published_at"] == "2024-01-02T03:04:05Z"


def test_versioned_template_rejects_negative_version():
    with pytest.raises(ValueError):
        VersionedTemplate.create(_template(), -1, TemplateScope.public(), "alice")