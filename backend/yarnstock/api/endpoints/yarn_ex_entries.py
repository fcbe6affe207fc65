"""纱线出库API"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from yarnstock.core.deps import get_current_user, get_db, require_permission
from yarnstock.models.user import User
from yarnstock.models.yarn_category import YarnCategory
from yarnstock.models.yarn_ex_entry import YarnExEntry
from yarnstock.models.yarn_in_entry import YarnInEntry
from yarnstock.schemas.auth import MessageResponse
from yarnstock.schemas.yarn_entry import (
    YarnExEntryCreate, YarnExEntryListResponse, YarnExEntryResponse, YarnExEntryUpdate,
)
from yarnstock.services.stock_aggregator import group_lots

logger = logging.getLogger(__name__)

router = APIRouter()


def _entry_query():
    return select(YarnExEntry).options(
        selectinload(YarnExEntry.category),
        selectinload(YarnExEntry.creator),
    )


async def _get_entry(db: AsyncSession, entry_id: int) -> Optional[YarnExEntry]:
    result = await db.execute(
        _entry_query()
        .where(YarnExEntry.id == entry_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def build_ex_entry_response(entry: YarnExEntry) -> YarnExEntryResponse:
    resp = YarnExEntryResponse.model_validate(entry)
    resp.category_name = entry.category.name if entry.category else None
    resp.created_by_name = entry.creator.display_name if entry.creator else None
    return resp


async def check_lot_availability(
    db: AsyncSession,
    category_id: int,
    lot_no: str,
    taking_weight: Decimal,
    exclude_entry_id: Optional[int] = None,
) -> None:
    """
    校验出库重量不超过批次剩余重量

    修改出库记录时不计算该记录本身。并发出库之间不加锁。
    """
    in_entries = (await db.execute(
        select(YarnInEntry).where(
            YarnInEntry.category_id == category_id,
            YarnInEntry.lot_no == lot_no,
        )
    )).scalars().all()
    if not in_entries:
        raise HTTPException(status_code=400, detail=f"批号 {lot_no} 没有入库记录")

    ex_query = select(YarnExEntry).where(
        YarnExEntry.category_id == category_id,
        YarnExEntry.lot_no == lot_no,
    )
    if exclude_entry_id is not None:
        ex_query = ex_query.where(YarnExEntry.id != exclude_entry_id)
    ex_entries = (await db.execute(ex_query)).scalars().all()

    available = group_lots(in_entries, ex_entries)[lot_no].available_weight
    if taking_weight > available:
        raise HTTPException(
            status_code=400,
            detail=f"出库重量超过可用重量（批号 {lot_no} 可用 {available} kg）"
        )


@router.get("/", response_model=YarnExEntryListResponse)
async def list_ex_entries(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    category_id: Optional[int] = Query(None, description="类别ID"),
    start_date: Optional[datetime] = Query(None, description="登记日期起"),
    end_date: Optional[datetime] = Query(None, description="登记日期止"),
    search: Optional[str] = Query(None, description="按批号搜索"),
) -> Any:
    """获取出库记录列表"""
    conditions = []
    if category_id is not None:
        conditions.append(YarnExEntry.category_id == category_id)
    if start_date:
        conditions.append(YarnExEntry.entry_date >= start_date)
    if end_date:
        conditions.append(YarnExEntry.entry_date <= end_date)
    if search and search.strip():
        conditions.append(YarnExEntry.lot_no.ilike(f"%{search.strip()}%"))

    # 统计总数
    count_query = select(func.count(YarnExEntry.id))
    query = _entry_query()
    if conditions:
        count_query = count_query.where(and_(*conditions))
        query = query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    # 排序和分页
    query = query.order_by(YarnExEntry.entry_date.desc(), YarnExEntry.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    entries = (await db.execute(query)).scalars().all()

    return YarnExEntryListResponse(
        data=[build_ex_entry_response(e) for e in entries],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/{entry_id}", response_model=YarnExEntryResponse)
async def get_ex_entry(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    entry_id: int,
) -> Any:
    """获取出库记录详情"""
    entry = await _get_entry(db, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="出库记录不存在")
    return build_ex_entry_response(entry)


@router.post("/", response_model=YarnExEntryResponse)
async def create_ex_entry(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("outEntry.create")),
    entry_in: YarnExEntryCreate,
) -> Any:
    """新增出库记录"""
    if not await db.get(YarnCategory, entry_in.category_id):
        raise HTTPException(status_code=400, detail="类别不存在")
    await check_lot_availability(db, entry_in.category_id, entry_in.lot_no, entry_in.taking_weight_in_kg)

    entry = YarnExEntry(
        **entry_in.model_dump(),
        created_by=current_user.id,
    )
    db.add(entry)
    await db.commit()

    logger.info(
        f"{current_user.email} 出库: 类别{entry.category_id} 批号{entry.lot_no} "
        f"{entry.taking_weight_in_kg}kg"
    )
    return build_ex_entry_response(await _get_entry(db, entry.id))


@router.put("/{entry_id}", response_model=YarnExEntryResponse)
async def update_ex_entry(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("outEntry.create")),
    entry_id: int,
    entry_in: YarnExEntryUpdate,
) -> Any:
    """修改出库记录"""
    entry = await _get_entry(db, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="出库记录不存在")

    update_data = {
        field: value for field, value in entry_in.model_dump(exclude_unset=True).items()
        if value is not None
    }
    category_id = update_data.get("category_id", entry.category_id)
    if category_id != entry.category_id and not await db.get(YarnCategory, category_id):
        raise HTTPException(status_code=400, detail="类别不存在")

    await check_lot_availability(
        db,
        category_id,
        update_data.get("lot_no", entry.lot_no),
        update_data.get("taking_weight_in_kg", entry.taking_weight_in_kg),
        exclude_entry_id=entry_id,
    )

    for field, value in update_data.items():
        setattr(entry, field, value)
    await db.commit()

    return build_ex_entry_response(await _get_entry(db, entry_id))


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_ex_entry(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("outEntry.create")),
    entry_id: int,
) -> Any:
    """删除出库记录"""
    entry = await db.get(YarnExEntry, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="出库记录不存在")

    await db.delete(entry)
    await db.commit()
    logger.info(f"{current_user.email} 删除出库记录: {entry_id} 批号{entry.lot_no}")

    return MessageResponse(message="删除成功")
