"""
权限判断

角色的权限是一棵嵌套的布尔树，例如::

    {
        "dashboard": {"view": True},
        "master": {"party": {"view": True, "create": False}},
    }

页面路由通过 ROUTE_PERMISSIONS 映射到树中的点路径（如 "master.party.view"），
接口操作直接使用点路径判断。
"""

import copy
from typing import Any, Dict, List, Mapping, Optional, Tuple

# 路由 -> 权限点路径（固定映射，运行期不变）
ROUTE_PERMISSIONS: Tuple[Tuple[str, str], ...] = (
    ("/dashboard", "dashboard.view"),
    ("/yarn-in", "inEntry.create"),
    ("/yarn-out", "outEntry.create"),
    ("/master/yarn-category", "master.category.view"),
    ("/master/party", "master.party.view"),
    ("/accounts/user", "accounts.user.view"),
    ("/accounts/role", "accounts.role.view"),
)

_CRUD = ("view", "create", "edit", "delete")

# 权限树结构：分组 -> 动作列表
PERMISSION_TREE: Dict[str, Any] = {
    "dashboard": ("view",),
    "inEntry": ("create",),
    "outEntry": ("create",),
    "master": {
        "category": _CRUD,
        "party": _CRUD,
    },
    "accounts": {
        "user": _CRUD,
        "role": _CRUD,
    },
}

# 导航菜单（与前端侧边栏一致）
NAVIGATION_ITEMS: Tuple[Dict[str, Any], ...] = (
    {"name": "Dashboard", "href": "/dashboard", "icon": "dashboard"},
    {
        "name": "Yarn In",
        "icon": "input",
        "children": [
            {"name": "Entry", "href": "/yarn-in/add", "icon": "add"},
            {"name": "List", "href": "/yarn-in", "icon": "list"},
        ],
    },
    {
        "name": "Yarn Out",
        "icon": "output",
        "children": [
            {"name": "Entry", "href": "/yarn-out/add", "icon": "add"},
            {"name": "List", "href": "/yarn-out", "icon": "list"},
        ],
    },
    {
        "name": "Master",
        "icon": "folder",
        "children": [
            {"name": "Yarn Category", "href": "/master/yarn-category", "icon": "category"},
            {"name": "Party", "href": "/master/party", "icon": "groups"},
        ],
    },
    {
        "name": "Accounts",
        "icon": "manage_accounts",
        "children": [
            {"name": "User", "href": "/accounts/user", "icon": "person"},
            {"name": "Role", "href": "/accounts/role", "icon": "admin_panel_settings"},
        ],
    },
)


def _build_tree(shape: Any, value: bool) -> Dict[str, Any]:
    if isinstance(shape, dict):
        return {key: _build_tree(sub, value) for key, sub in shape.items()}
    return {action: value for action in shape}


def empty_permissions() -> Dict[str, Any]:
    """全部为 False 的权限树"""
    return _build_tree(PERMISSION_TREE, False)


# 管理员拥有全部权限
ADMIN_PERMISSIONS: Dict[str, Any] = _build_tree(PERMISSION_TREE, True)


def all_permission_paths() -> List[str]:
    """列出所有权限点路径，如 master.party.edit"""
    paths = []

    def walk(shape: Any, prefix: str) -> None:
        if isinstance(shape, dict):
            for key, sub in shape.items():
                walk(sub, f"{prefix}{key}.")
        else:
            paths.extend(f"{prefix}{action}" for action in shape)

    walk(PERMISSION_TREE, "")
    return paths


def get_nested_permission(permissions: Optional[Mapping[str, Any]], path: str) -> bool:
    """按点路径逐级取值，只有最终值严格为 True 才算有权限"""
    current: Any = permissions
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return False
    return current is True


def normalize_route(route: str) -> str:
    """去掉查询参数和末尾的斜杠"""
    path = route.split("?")[0]
    if path.endswith("/"):
        path = path[:-1]
    return path or "/"


def resolve_route_permission(route: str) -> Optional[str]:
    """查找路由对应的权限点路径，支持子路由继承（/dashboard/LOT1 -> /dashboard）"""
    normalized = normalize_route(route)
    for prefix, path in ROUTE_PERMISSIONS:
        if prefix == normalized:
            return path

    matches = [
        (prefix, path) for prefix, path in ROUTE_PERMISSIONS
        if normalized.startswith(prefix + "/")
    ]
    if not matches:
        return None
    # 取最长的前缀
    return max(matches, key=lambda item: len(item[0]))[1]


def has_permission(permissions: Optional[Mapping[str, Any]], route: str) -> bool:
    """
    判断角色能否访问某个路由

    - 没有权限树：拒绝
    - 路由不在映射表中（如 /profile、/change-password）：放行
    - 路由不是字符串：拒绝
    """
    if permissions is None or not isinstance(route, str):
        return False

    permission_path = resolve_route_permission(route)
    if permission_path is None:
        return True

    return get_nested_permission(permissions, permission_path)


def can_access_navigation_item(permissions: Optional[Mapping[str, Any]], item: Mapping[str, Any]) -> bool:
    """判断导航项是否可见：有子菜单时任一子项可访问即可"""
    if permissions is None:
        return False

    if item.get("href"):
        return has_permission(permissions, item["href"])

    children = item.get("children") or []
    if children:
        return any(
            has_permission(permissions, child.get("href"))
            for child in children if child.get("href")
        )

    return True


def filter_navigation(permissions: Optional[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """按角色权限过滤导航菜单，父级菜单只保留可访问的子项"""
    visible = []
    for item in NAVIGATION_ITEMS:
        if item.get("children"):
            children = [
                copy.deepcopy(child) for child in item["children"]
                if child.get("href") and has_permission(permissions, child["href"])
            ]
            if children:
                visible.append({**copy.deepcopy(item), "children": children})
        elif can_access_navigation_item(permissions, item):
            visible.append(copy.deepcopy(item))
    return visible
