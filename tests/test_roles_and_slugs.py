"""
Unit tests for the role hierarchy, slug rules and app-slug helpers (no DB).
"""

import pytest

from account_hub.core.catalog import catalog_slugs, get_app, get_catalog, validate_app_slugs
from account_hub.core.errors import ValidationFailed
from account_hub.models.invitation import decode_app_slugs, encode_app_slugs
from account_hub.services.slugs import is_valid_slug, slugify, validate_slug
from account_hub_shared.schemas.common import ASSIGNABLE_ROLES, MANAGER_ROLES, Role


class TestRoleHierarchy:
    def test_privilege_order(self):
        assert Role.OWNER > Role.ADMIN > Role.MEMBER > Role.EXTERNAL
        assert sorted([Role.MEMBER, Role.OWNER, Role.EXTERNAL, Role.ADMIN]) == [
            Role.EXTERNAL,
            Role.MEMBER,
            Role.ADMIN,
            Role.OWNER,
        ]

    def test_at_least(self):
        assert Role.ADMIN.at_least(Role.MEMBER)
        assert Role.ADMIN.at_least(Role.ADMIN)
        assert not Role.EXTERNAL.at_least(Role.MEMBER)

    def test_not_string_ordering(self):
        """Alphabetically ADMIN sorts before MEMBER; by privilege it is above it."""
        assert Role.ADMIN > Role.MEMBER

    def test_compare_with_non_role_is_unsupported(self):
        with pytest.raises(TypeError):
            Role.ADMIN < 3  # noqa: B015

    def test_assignable_roles_exclude_owner(self):
        assert Role.OWNER not in ASSIGNABLE_ROLES
        assert MANAGER_ROLES == {Role.OWNER, Role.ADMIN}

    def test_value_round_trip(self):
        assert Role("EXTERNAL") is Role.EXTERNAL
        with pytest.raises(ValueError):
            Role("SUPERUSER")


class TestSlugs:
    @pytest.mark.parametrize("slug", ["acme", "acme-corp", "a1-b2-c3", "2024"])
    def test_valid(self, slug):
        assert is_valid_slug(slug)

    @pytest.mark.parametrize("slug", ["Acme", "-acme", "acme-", "acme--corp", "acme corp", ""])
    def test_invalid(self, slug):
        assert not is_valid_slug(slug)
        with pytest.raises(ValidationFailed):
            validate_slug(slug)

    def test_slugify(self):
        assert slugify("Acme Corp, Inc.", fallback="org") == "acme-corp-inc"
        assert slugify("  Hello__World  ", fallback="org") == "hello-world"

    def test_slugify_fallback(self):
        assert slugify("!!!", fallback="entity") == "entity"


class TestAppSlugs:
    def test_encode_decode_preserves_order_and_dedups(self):
        stored = encode_app_slugs(["nota", "contacts", "nota"])
        assert stored == "nota,contacts"
        assert decode_app_slugs(stored) == ["nota", "contacts"]

    def test_empty_is_stored_as_null(self):
        assert encode_app_slugs([]) is None
        assert encode_app_slugs(None) is None
        assert decode_app_slugs(None) == []
        assert decode_app_slugs("") == []

    def test_decode_tolerates_whitespace(self):
        assert decode_app_slugs(" nota , ,contacts") == ["nota", "contacts"]

    def test_validate_against_catalog(self):
        assert validate_app_slugs(["contacts", "nota", "contacts"]) == ["contacts", "nota"]
        with pytest.raises(ValidationFailed):
            validate_app_slugs(["nota", "spreadsheets"])

    def test_required(self):
        assert validate_app_slugs([]) == []
        with pytest.raises(ValidationFailed):
            validate_app_slugs([], required=True)
        with pytest.raises(ValidationFailed):
            validate_app_slugs(None, required=True)


class TestCatalog:
    def test_catalog_order(self):
        assert [app.slug for app in get_catalog()] == ["nota", "contacts", "inventory", "projects"]

    def test_lookup(self):
        assert get_app("nota").free is True
        assert get_app("missing") is None
        assert catalog_slugs() == {"nota", "contacts", "inventory", "projects"}
