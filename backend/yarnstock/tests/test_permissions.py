from yarnstock.core.permissions import (
    ADMIN_PERMISSIONS,
    NAVIGATION_ITEMS,
    all_permission_paths,
    can_access_navigation_item,
    empty_permissions,
    filter_navigation,
    get_nested_permission,
    has_permission,
    normalize_route,
    resolve_route_permission,
)

ROLE_VIEWER = {"accounts": {"role": {"view": True, "create": False, "edit": False, "delete": False}}}


def test_role_viewer_can_open_roles_but_not_users():
    assert has_permission(ROLE_VIEWER, "/accounts/role") is True
    assert has_permission(ROLE_VIEWER, "/accounts/user") is False


def test_missing_permissions_deny_everything():
    for route in ("/dashboard", "/profile", "/anything"):
        assert has_permission(None, route) is False


def test_empty_tree_still_allows_unmapped_routes():
    assert has_permission({}, "/profile") is True
    assert has_permission({}, "/dashboard") is False


def test_unmapped_routes_are_allowed():
    assert has_permission(empty_permissions(), "/profile") is True
    assert has_permission(empty_permissions(), "/change-password") is True


def test_sub_routes_inherit_parent_permission():
    perms = {"dashboard": {"view": True}}

    assert has_permission(perms, "/dashboard/LOT-42") is True
    assert has_permission(empty_permissions(), "/dashboard/LOT-42") is False
    assert has_permission({"inEntry": {"create": True}}, "/yarn-in/add") is True


def test_prefix_must_end_at_path_boundary():
    assert resolve_route_permission("/dashboards") is None
    assert resolve_route_permission("/yarn-inventory") is None


def test_query_string_and_trailing_slash_are_ignored():
    perms = {"master": {"party": {"view": True}}}

    assert normalize_route("/master/party/?page=2") == "/master/party"
    assert normalize_route("") == "/"
    assert has_permission(perms, "/master/party/?page=2") is True


def test_only_literal_true_grants():
    assert get_nested_permission({"dashboard": {"view": "yes"}}, "dashboard.view") is False
    assert get_nested_permission({"dashboard": {"view": 1}}, "dashboard.view") is False
    assert get_nested_permission({"dashboard": True}, "dashboard.view") is False
    assert get_nested_permission({"dashboard": {"view": True}}, "dashboard.view") is True


def test_admin_tree_grants_every_path():
    paths = all_permission_paths()

    assert "master.category.delete" in paths
    assert "outEntry.create" in paths
    assert all(get_nested_permission(ADMIN_PERMISSIONS, p) for p in paths)
    assert not any(get_nested_permission(empty_permissions(), p) for p in paths)


def test_parent_navigation_item_visible_when_any_child_allowed():
    master = next(item for item in NAVIGATION_ITEMS if item["name"] == "Master")
    perms = {"master": {"party": {"view": True}}}

    assert can_access_navigation_item(perms, master) is True
    assert can_access_navigation_item(empty_permissions(), master) is False
    assert can_access_navigation_item(None, master) is False


def test_navigation_item_without_href_or_children_is_visible():
    assert can_access_navigation_item({}, {"name": "Help"}) is True


def test_filter_navigation_keeps_only_accessible_children():
    perms = {"dashboard": {"view": True}, "master": {"party": {"view": True}}}

    items = filter_navigation(perms)

    assert [item["name"] for item in items] == ["Dashboard", "Master"]
    assert [child["name"] for child in items[1]["children"]] == ["Party"]


def test_filter_navigation_does_not_mutate_menu():
    filter_navigation({"master": {"party": {"view": True}}})

    master = next(item for item in NAVIGATION_ITEMS if item["name"] == "Master")
    assert len(master["children"]) == 2


def test_admin_sees_full_menu():
    assert len(filter_navigation(ADMIN_PERMISSIONS)) == len(NAVIGATION_ITEMS)


def test_non_string_route_is_denied():
    assert has_permission(ADMIN_PERMISSIONS, None) is False
    assert has_permission(ADMIN_PERMISSIONS, 42) is False


def test_children_without_href_are_skipped():
    assert can_access_navigation_item({}, {"children": [{"name": "x"}]}) is False
    assert can_access_navigation_item({}, {"children": [{"href": None}]}) is False
    assert can_access_navigation_item(
        {}, {"children": [{"name": "x"}, {"href": "/profile"}]}
    ) is True
