"""角色管理API"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from yarnstock.core.deps import get_db, require_permission
from yarnstock.models.role import Role
from yarnstock.models.user import User
from yarnstock.schemas.auth import MessageResponse
from yarnstock.schemas.role import RoleCreate, RoleListResponse, RoleResponse, RoleUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_role(db: AsyncSession, role_id: int) -> Optional[Role]:
    result = await db.execute(
        select(Role)
        .options(selectinload(Role.creator))
        .where(Role.id == role_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _count_role_users(db: AsyncSession, role_id: int) -> int:
    """使用该角色的有效用户数（不含已删除用户）"""
    return (await db.execute(
        select(func.count(User.id)).where(User.role_id == role_id, User.is_deleted.is_(False))
    )).scalar() or 0


async def _check_name_unique(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(Role.id).where(func.lower(Role.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Role.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=400, detail="角色名称已存在")


def build_role_response(role: Role, user_count: int = 0) -> RoleResponse:
    resp = RoleResponse.model_validate(role)
    resp.created_by_name = role.creator.display_name if role.creator else None
    resp.user_count = user_count
    return resp


@router.get("/", response_model=RoleListResponse)
async def list_roles(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("accounts.role.view")),
    search: Optional[str] = Query(None, description="按名称搜索"),
) -> Any:
    """获取角色列表"""
    query = select(Role).options(selectinload(Role.creator))
    if search and search.strip():
        query = query.where(Role.name.ilike(f"%{search.strip()}%"))
    query = query.order_by(Role.created_at.desc(), Role.id.desc())
    roles = (await db.execute(query)).scalars().all()

    # 统计各角色的用户数
    count_rows = (await db.execute(
        select(User.role_id, func.count(User.id))
        .where(User.is_deleted.is_(False), User.role_id.isnot(None))
        .group_by(User.role_id)
    )).all()
    counts = {role_id: count for role_id, count in count_rows}

    return RoleListResponse(
        data=[build_role_response(r, counts.get(r.id, 0)) for r in roles],
        total=len(roles),
    )


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("accounts.role.view")),
    role_id: int,
) -> Any:
    """获取角色详情"""
    role = await _get_role(db, role_id)
    if not role:
        raise HTTPException(status_code=404, detail="角色不存在")
    return build_role_response(role, await _count_role_users(db, role_id))


@router.post("/", response_model=RoleResponse)
async def create_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("accounts.role.create")),
    role_in: RoleCreate,
) -> Any:
    """创建角色"""
    await _check_name_unique(db, role_in.name)

    role = Role(
        name=role_in.name,
        permissions=role_in.permissions.model_dump(),
        created_by=current_user.id,
    )
    db.add(role)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="角色名称已存在")

    logger.info(f"{current_user.email} 创建角色: {role.name}")
    return build_role_response(await _get_role(db, role.id))


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("accounts.role.edit")),
    role_id: int,
    role_in: RoleUpdate,
) -> Any:
    """更新角色"""
    role = await _get_role(db, role_id)
    if not role:
        raise HTTPException(status_code=404, detail="角色不存在")
    if role.is_admin:
        raise HTTPException(status_code=403, detail="系统管理员角色不能修改")

    if role_in.name is not None:
        await _check_name_unique(db, role_in.name, exclude_id=role_id)
        role.name = role_in.name
    if role_in.permissions is not None:
        role.permissions = role_in.permissions.model_dump()

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="角色名称已存在")

    logger.info(f"{current_user.email} 更新角色: {role.name}")
    return build_role_response(await _get_role(db, role_id), await _count_role_users(db, role_id))


@router.delete("/{role_id}", response_model=MessageResponse)
async def delete_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("accounts.role.delete")),
    role_id: int,
) -> Any:
    """删除角色，仍有用户使用时不能删除"""
    role = await _get_role(db, role_id)
    if not role:
        raise HTTPException(status_code=404, detail="角色不存在")
    if role.is_admin:
        raise HTTPException(status_code=403, detail="系统管理员角色不能删除")

    user_count = await _count_role_users(db, role_id)
    if user_count > 0:
        raise HTTPException(
            status_code=400,
            detail=f"该角色已分配给 {user_count} 个用户，无法删除"
        )

    # 已删除的用户解除角色关联
    deleted_users = (await db.execute(
        select(User).where(User.role_id == role_id)
    )).scalars().all()
    for user in deleted_users:
        user.role_id = None

    await db.delete(role)
    await db.commit()
    logger.info(f"{current_user.email} 删除角色: {role.name}")

    return MessageResponse(message="删除成功")
