"""Tests for wildcard permission matching and the per-principal oracle."""

import pytest

from indexsets.service.permissions import IndexSetPermissions, PermissionOracle, Principal, Role, WildcardPermission


class TestWildcardPermission:
    @pytest.mark.parametrize(
        "granted,wanted",
        [
            ("indexsets:read", "indexsets:read:abc"),
            ("indexsets:read:abc", "indexsets:read:abc"),
            ("indexsets:*", "indexsets:delete:abc"),
            ("indexsets:read,edit:abc", "indexsets:edit:abc"),
            ("*", "indexsets:create"),
            ("indexsets:read:*", "indexsets:read"),
        ],
    )
    def test_implies(self, granted, wanted):
        assert WildcardPermission(granted).implies(WildcardPermission(wanted))

    @pytest.mark.parametrize(
        "granted,wanted",
        [
            ("indexsets:read:abc", "indexsets:read:xyz"),
            ("indexsets:read:abc", "indexsets:read"),
            ("indexsets:read", "indexsets:edit:abc"),
            ("streams:*", "indexsets:read:abc"),
            ("indexsets:READ", "indexsets:read"),
        ],
    )
    def test_does_not_imply(self, granted, wanted):
        assert not WildcardPermission(granted).implies(WildcardPermission(wanted))

    @pytest.mark.parametrize("permission", ["", "   ", "indexsets::read"])
    def test_invalid(self, permission):
        with pytest.raises(ValueError):
            WildcardPermission(permission)


class TestPermissionOracle:
    def test_admin_is_permitted_everything(self):
        oracle = PermissionOracle(Principal("admin", role=Role.ADMIN))
        assert oracle.is_permitted(IndexSetPermissions.DELETE, "any")
        assert oracle.is_permitted(IndexSetPermissions.CREATE)

    def test_read_only_role(self):
        oracle = PermissionOracle(Principal("viewer", role=Role.RO))
        assert oracle.is_permitted(IndexSetPermissions.READ, "abc")
        assert not oracle.is_permitted(IndexSetPermissions.EDIT, "abc")
        assert not oracle.is_permitted(IndexSetPermissions.CREATE)

    def test_read_write_role_cannot_delete(self):
        oracle = PermissionOracle(Principal("editor", role=Role.RW))
        assert oracle.is_permitted(IndexSetPermissions.CREATE)
        assert oracle.is_permitted(IndexSetPermissions.EDIT, "abc")
        assert not oracle.is_permitted(IndexSetPermissions.DELETE, "abc")

    def test_explicit_grants_are_per_id(self):
        oracle = PermissionOracle(Principal("ops", role=Role.RO, permissions=["indexsets:delete:abc"]))
        assert oracle("indexsets:delete", "abc")
        assert not oracle("indexsets:delete", "xyz")

    @pytest.mark.parametrize("resource_id", ["abc:evil", "abc:x:y", "abc,xyz", "abc:*"])
    def test_grant_on_id_does_not_cover_ids_with_separators(self, resource_id):
        oracle = PermissionOracle(
            Principal("ops", role=Role.RO, permissions=["indexsets:edit:abc", "indexsets:delete:abc"])
        )
        assert not oracle.is_permitted(IndexSetPermissions.EDIT, resource_id)
        assert not oracle.is_permitted(IndexSetPermissions.DELETE, resource_id)

    @pytest.mark.parametrize("resource_id", [",", ":", "a::b", ""])
    def test_malformed_id_is_checked_not_parsed(self, resource_id):
        oracle = PermissionOracle(Principal("ops", role=Role.RO, permissions=["indexsets:delete:abc"]))
        assert oracle.is_permitted(IndexSetPermissions.READ, resource_id)
        assert not oracle.is_permitted(IndexSetPermissions.DELETE, resource_id)


class TestOnResource:
    def test_id_is_one_literal_part(self):
        wanted = WildcardPermission.on_resource("indexsets:edit", "abc:evil")
        assert wanted.parts[-1] == frozenset(["abc:evil"])
        assert not WildcardPermission("indexsets:edit:abc").implies(wanted)
        assert WildcardPermission("indexsets:edit:*").implies(wanted)

    def test_matches_plain_id_like_full_string(self):
        wanted = WildcardPermission.on_resource("indexsets:read", "abc")
        assert WildcardPermission("indexsets:read:abc").implies(wanted)
        assert wanted.permission == "indexsets:read:abc"
