"""纱线入库API"""

import logging
from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from yarnstock.core.deps import get_current_user, get_db, require_permission
from yarnstock.models.party import Party
from yarnstock.models.user import User
from yarnstock.models.yarn_category import YarnCategory
from yarnstock.models.yarn_ex_entry import YarnExEntry
from yarnstock.models.yarn_in_entry import YarnInEntry
from yarnstock.schemas.auth import MessageResponse
from yarnstock.schemas.yarn_entry import (
    AvailableLotResponse, YarnInEntryCreate, YarnInEntryListResponse,
    YarnInEntryResponse, YarnInEntryUpdate,
)
from yarnstock.services.stock_aggregator import compute_available_lots

logger = logging.getLogger(__name__)

router = APIRouter()


def _entry_query():
    return select(YarnInEntry).options(
        selectinload(YarnInEntry.category),
        selectinload(YarnInEntry.party),
        selectinload(YarnInEntry.creator),
    )


async def _get_entry(db: AsyncSession, entry_id: int) -> Optional[YarnInEntry]:
    result = await db.execute(
        _entry_query()
        .where(YarnInEntry.id == entry_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _check_references(db: AsyncSession, category_id: Optional[int], party_id: Optional[int]) -> None:
    if category_id is not None and not await db.get(YarnCategory, category_id):
        raise HTTPException(status_code=400, detail="类别不存在")
    if party_id is not None and not await db.get(Party, party_id):
        raise HTTPException(status_code=400, detail="往来单位不存在")


def build_in_entry_response(entry: YarnInEntry) -> YarnInEntryResponse:
    resp = YarnInEntryResponse.model_validate(entry)
    resp.category_name = entry.category.name if entry.category else None
    resp.party_name = entry.party.name if entry.party else None
    resp.created_by_name = entry.creator.display_name if entry.creator else None
    return resp


@router.get("/", response_model=YarnInEntryListResponse)
async def list_in_entries(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    category_id: Optional[int] = Query(None, description="类别ID"),
    start_date: Optional[datetime] = Query(None, description="登记日期起"),
    end_date: Optional[datetime] = Query(None, description="登记日期止"),
    search: Optional[str] = Query(None, description="按批号、名称、往来单位搜索"),
) -> Any:
    """获取入库记录列表"""
    conditions = []
    if category_id is not None:
        conditions.append(YarnInEntry.category_id == category_id)
    if start_date:
        conditions.append(YarnInEntry.entry_date >= start_date)
    if end_date:
        conditions.append(YarnInEntry.entry_date <= end_date)
    if search and search.strip():
        keyword = f"%{search.strip()}%"
        conditions.append(or_(
            YarnInEntry.lot_no.ilike(keyword),
            YarnInEntry.name.ilike(keyword),
            YarnInEntry.party_id.in_(select(Party.id).where(Party.name.ilike(keyword))),
        ))

    # 统计总数
    count_query = select(func.count(YarnInEntry.id))
    query = _entry_query()
    if conditions:
        count_query = count_query.where(and_(*conditions))
        query = query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    # 排序和分页
    query = query.order_by(YarnInEntry.entry_date.desc(), YarnInEntry.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    entries = (await db.execute(query)).scalars().all()

    return YarnInEntryListResponse(
        data=[build_in_entry_response(e) for e in entries],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/available-lots", response_model=List[AvailableLotResponse])
async def get_available_lots(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    category_id: int = Query(..., description="类别ID"),
) -> Any:
    """某类别下仍有库存的批次（出库时选择批号用）"""
    in_entries = (await db.execute(
        select(YarnInEntry).where(YarnInEntry.category_id == category_id)
    )).scalars().all()
    ex_entries = (await db.execute(
        select(YarnExEntry).where(YarnExEntry.category_id == category_id)
    )).scalars().all()

    lots = compute_available_lots(in_entries, ex_entries)
    return [AvailableLotResponse.model_validate(lot) for lot in lots]


@router.get("/{entry_id}", response_model=YarnInEntryResponse)
async def get_in_entry(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    entry_id: int,
) -> Any:
    """获取入库记录详情"""
    entry = await _get_entry(db, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="入库记录不存在")
    return build_in_entry_response(entry)


@router.post("/", response_model=YarnInEntryResponse)
async def create_in_entry(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("inEntry.create")),
    entry_in: YarnInEntryCreate,
) -> Any:
    """新增入库记录"""
    await _check_references(db, entry_in.category_id, entry_in.party_id)

    entry = YarnInEntry(
        **entry_in.model_dump(),
        created_by=current_user.id,
    )
    db.add(entry)
    await db.commit()

    logger.info(
        f"{current_user.email} 入库: 类别{entry.category_id} 批号{entry.lot_no} "
        f"{entry.no_of_boxes}箱 {entry.weight_in_kg}kg"
    )
    return build_in_entry_response(await _get_entry(db, entry.id))


@router.put("/{entry_id}", response_model=YarnInEntryResponse)
async def update_in_entry(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("inEntry.create")),
    entry_id: int,
    entry_in: YarnInEntryUpdate,
) -> Any:
    """修改入库记录"""
    entry = await _get_entry(db, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="入库记录不存在")

    update_data = entry_in.model_dump(exclude_unset=True)
    await _check_references(db, update_data.get("category_id"), update_data.get("party_id"))
    for field, value in update_data.items():
        if value is None and field != "name":
            continue
        setattr(entry, field, value)
    await db.commit()

    return build_in_entry_response(await _get_entry(db, entry_id))


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_in_entry(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("inEntry.create")),
    entry_id: int,
) -> Any:
    """删除入库记录"""
    entry = await db.get(YarnInEntry, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="入库记录不存在")

    await db.delete(entry)
    await db.commit()
    logger.info(f"{current_user.email} 删除入库记录: {entry_id} 批号{entry.lot_no}")

    return MessageResponse(message="删除成功")
