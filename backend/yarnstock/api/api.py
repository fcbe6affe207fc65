"""API 路由聚合"""
from fastapi import APIRouter

from yarnstock.api.endpoints import (
    auth, users, roles, profile,
    yarn_categories, parties, yarn_in_entries, yarn_ex_entries, dashboard,
)

api_router = APIRouter()

# 账号与权限
api_router.include_router(auth.router, prefix="/auth", tags=["登录认证"])
api_router.include_router(users.router, prefix="/accounts/user", tags=["用户管理"])
api_router.include_router(roles.router, prefix="/accounts/role", tags=["角色管理"])
api_router.include_router(profile.router, prefix="/user", tags=["个人资料"])

# 基础资料
api_router.include_router(yarn_categories.router, prefix="/yarn-category", tags=["纱线类别"])
api_router.include_router(parties.router, prefix="/party", tags=["往来单位"])

# 出入库
api_router.include_router(yarn_in_entries.router, prefix="/yarn-in-entry", tags=["纱线入库"])
api_router.include_router(yarn_ex_entries.router, prefix="/yarn-ex-entry", tags=["纱线出库"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["首页看板"])
