"""依赖注入 - 数据库会话、当前用户、权限校验"""
import logging
from typing import AsyncGenerator, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from yarnstock.core.config import settings
from yarnstock.core.permissions import get_nested_permission
from yarnstock.core.security import TOKEN_TYPE_AUTH, decode_token
from yarnstock.db.session import SessionLocal
from yarnstock.models.user import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    获取数据库会话依赖
    """
    async with SessionLocal() as session:
        yield session


def _credentials_exception(detail: str = "登录已失效，请重新登录") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_user_by_token(db: AsyncSession, token: str) -> User:
    """根据登录令牌加载用户，令牌无效或用户不存在/已删除时抛出 401"""
    payload = decode_token(token)
    if not payload:
        raise _credentials_exception()
    if payload.get("type") != TOKEN_TYPE_AUTH:
        raise _credentials_exception("令牌类型无效")

    result = await db.execute(select(User).where(User.email == payload["email"].lower()))
    user = result.scalar_one_or_none()
    if not user or user.is_deleted:
        raise _credentials_exception("用户不存在")
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await get_user_by_token(db, token)


def require_permission(permission_path: str) -> Callable:
    """
    生成按权限点校验的依赖，如 require_permission("master.party.create")

    没有角色或权限树中对应值不为 True 时返回 403
    """
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if not get_nested_permission(current_user.permissions, permission_path):
            logger.warning(f"用户 {current_user.email} 缺少权限 {permission_path}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="没有权限执行此操作")
        return current_user

    return checker
