"""纱线类别API"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from yarnstock.core.deps import get_current_user, get_db, require_permission
from yarnstock.models.user import User
from yarnstock.models.yarn_category import YarnCategory
from yarnstock.models.yarn_ex_entry import YarnExEntry
from yarnstock.models.yarn_in_entry import YarnInEntry
from yarnstock.schemas.auth import MessageResponse
from yarnstock.schemas.yarn_category import (
    YarnCategoryCreate, YarnCategoryListResponse, YarnCategoryResponse, YarnCategoryUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_category(db: AsyncSession, category_id: int) -> Optional[YarnCategory]:
    result = await db.execute(
        select(YarnCategory)
        .options(selectinload(YarnCategory.creator))
        .where(YarnCategory.id == category_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def build_category_response(category: YarnCategory) -> YarnCategoryResponse:
    resp = YarnCategoryResponse.model_validate(category)
    resp.created_by_name = category.creator.display_name if category.creator else None
    return resp


@router.get("/", response_model=YarnCategoryListResponse)
async def list_categories(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    search: Optional[str] = Query(None, description="按名称、描述搜索"),
) -> Any:
    """获取纱线类别列表"""
    query = select(YarnCategory).options(selectinload(YarnCategory.creator))
    if search and search.strip():
        keyword = f"%{search.strip()}%"
        query = query.where(or_(
            YarnCategory.name.ilike(keyword),
            YarnCategory.description.ilike(keyword),
        ))
    query = query.order_by(YarnCategory.created_at.desc(), YarnCategory.id.desc())
    categories = (await db.execute(query)).scalars().all()

    return YarnCategoryListResponse(
        data=[build_category_response(c) for c in categories],
        total=len(categories),
    )


@router.get("/{category_id}", response_model=YarnCategoryResponse)
async def get_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    category_id: int,
) -> Any:
    """获取纱线类别详情"""
    category = await _get_category(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="类别不存在")
    return build_category_response(category)


@router.post("/", response_model=YarnCategoryResponse)
async def create_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("master.category.create")),
    category_in: YarnCategoryCreate,
) -> Any:
    """创建纱线类别"""
    category = YarnCategory(
        **category_in.model_dump(),
        created_by=current_user.id,
    )
    db.add(category)
    await db.commit()

    logger.info(f"{current_user.email} 创建类别: {category.name}")
    return build_category_response(await _get_category(db, category.id))


@router.put("/{category_id}", response_model=YarnCategoryResponse)
async def update_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("master.category.edit")),
    category_id: int,
    category_in: YarnCategoryUpdate,
) -> Any:
    """更新纱线类别"""
    category = await _get_category(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="类别不存在")

    update_data = category_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in ("name", "no_of_cones", "weight_per_box"):
            continue
        setattr(category, field, value)
    await db.commit()

    return build_category_response(await _get_category(db, category_id))


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("master.category.delete")),
    category_id: int,
) -> Any:
    """删除纱线类别，已有入库/出库记录时不能删除"""
    category = await db.get(YarnCategory, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="类别不存在")

    in_count = (await db.execute(
        select(func.count(YarnInEntry.id)).where(YarnInEntry.category_id == category_id)
    )).scalar() or 0
    ex_count = (await db.execute(
        select(func.count(YarnExEntry.id)).where(YarnExEntry.category_id == category_id)
    )).scalar() or 0
    if in_count or ex_count:
        raise HTTPException(
            status_code=400,
            detail=f"该类别已被 {in_count} 条入库记录、{ex_count} 条出库记录引用，无法删除"
        )

    await db.delete(category)
    await db.commit()
    logger.info(f"{current_user.email} 删除类别: {category.name}")

    return MessageResponse(message="删除成功")
