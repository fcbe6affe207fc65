"""用户管理API"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from yarnstock.core.deps import get_db, require_permission
from yarnstock.models.role import Role
from yarnstock.models.user import User
from yarnstock.schemas.auth import MessageResponse
from yarnstock.schemas.user import UserListResponse, UserResponse, UserRoleUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@router.get("/", response_model=UserListResponse)
async def list_users(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("accounts.user.view")),
    status: str = Query("all", description="active（未删除）/ inactive（已删除）/ all"),
    role_id: Optional[int] = Query(None, description="角色ID"),
    search: Optional[str] = Query(None, description="按姓名、邮箱、角色名称搜索"),
) -> Any:
    """获取用户列表"""
    query = select(User).outerjoin(Role, User.role_id == Role.id)

    conditions = []
    if status == "active":
        conditions.append(User.is_deleted.is_(False))
    elif status == "inactive":
        conditions.append(User.is_deleted.is_(True))
    if role_id is not None:
        conditions.append(User.role_id == role_id)
    if search and search.strip():
        keyword = f"%{search.strip()}%"
        conditions.append(or_(
            User.name.ilike(keyword),
            User.email.ilike(keyword),
            Role.name.ilike(keyword),
        ))

    if conditions:
        query = query.where(and_(*conditions))

    query = query.order_by(User.created_at.desc(), User.id.desc())
    users = (await db.execute(query)).scalars().unique().all()

    return UserListResponse(
        data=[UserResponse.model_validate(u) for u in users],
        total=len(users),
    )


@router.put("/{user_id}", response_model=UserResponse)
async def update_user_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("accounts.user.edit")),
    user_id: int,
    role_in: UserRoleUpdate,
) -> Any:
    """修改用户角色"""
    user = await _get_user(db, user_id)
    if not user or user.is_deleted:
        raise HTTPException(status_code=404, detail="用户不存在")

    if role_in.role_id is not None and not await db.get(Role, role_in.role_id):
        raise HTTPException(status_code=400, detail="角色不存在")

    user.role_id = role_in.role_id
    await db.commit()
    logger.info(f"{current_user.email} 修改用户角色: {user.email} -> {role_in.role_id}")

    return UserResponse.model_validate(await _get_user(db, user_id))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("accounts.user.delete")),
    user_id: int,
) -> Any:
    """
    删除用户

    - 邀请中（未注册）的用户直接删除
    - 已注册的用户只做软删除，保留其录入的数据
    """
    user = await _get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="用户不存在")
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="不能删除当前登录的用户")

    if user.is_joined:
        user.is_deleted = True
        logger.info(f"{current_user.email} 停用用户: {user.email}")
    else:
        await db.delete(user)
        logger.info(f"{current_user.email} 删除邀请: {user.email}")
    await db.commit()

    return MessageResponse(message="删除成功")


@router.patch("/{user_id}", response_model=MessageResponse)
async def recover_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("accounts.user.edit")),
    user_id: int,
) -> Any:
    """恢复已删除的用户"""
    user = await _get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="用户不存在")
    if not user.is_deleted:
        raise HTTPException(status_code=400, detail="该用户未被删除")

    user.is_deleted = False
    await db.commit()
    logger.info(f"{current_user.email} 恢复用户: {user.email}")

    return MessageResponse(message="恢复成功")
