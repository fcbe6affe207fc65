"""首页看板API"""

import logging
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from yarnstock.api.endpoints.yarn_ex_entries import build_ex_entry_response
from yarnstock.api.endpoints.yarn_in_entries import build_in_entry_response
from yarnstock.core.deps import get_db, require_permission
from yarnstock.models.user import User
from yarnstock.models.yarn_category import YarnCategory
from yarnstock.models.yarn_ex_entry import YarnExEntry
from yarnstock.models.yarn_in_entry import YarnInEntry
from yarnstock.schemas.dashboard import (
    CategorySummaryResponse, DashboardSummaryResponse, LotDetailResponse,
)
from yarnstock.services.stock_aggregator import summarize_categories, summarize_lot

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/summary", response_model=DashboardSummaryResponse)
async def get_summary(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("dashboard.view")),
) -> Any:
    """按类别汇总库存"""
    categories = (await db.execute(select(YarnCategory))).scalars().all()
    in_entries = (await db.execute(select(YarnInEntry))).scalars().all()
    ex_entries = (await db.execute(select(YarnExEntry))).scalars().all()

    summaries = summarize_categories(categories, in_entries, ex_entries)
    total_weight = sum((s.total_weight for s in summaries), Decimal("0"))
    available_weight = sum((s.available_weight for s in summaries), Decimal("0"))

    return DashboardSummaryResponse(
        total_weight=total_weight,
        available_weight=available_weight,
        categories=[CategorySummaryResponse.model_validate(s) for s in summaries],
    )


@router.get("/lots/{lot_no}", response_model=LotDetailResponse)
async def get_lot_detail(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("dashboard.view")),
    lot_no: str,
    category_id: Optional[int] = Query(None, description="类别ID，不传则包含所有类别"),
) -> Any:
    """批次详情：入库/出库明细和剩余重量"""
    in_query = select(YarnInEntry).options(
        selectinload(YarnInEntry.category),
        selectinload(YarnInEntry.party),
        selectinload(YarnInEntry.creator),
    ).where(YarnInEntry.lot_no == lot_no)
    ex_query = select(YarnExEntry).options(
        selectinload(YarnExEntry.category),
        selectinload(YarnExEntry.creator),
    ).where(YarnExEntry.lot_no == lot_no)
    if category_id is not None:
        in_query = in_query.where(YarnInEntry.category_id == category_id)
        ex_query = ex_query.where(YarnExEntry.category_id == category_id)

    in_entries = (await db.execute(
        in_query.order_by(YarnInEntry.entry_date, YarnInEntry.id)
    )).scalars().all()
    if not in_entries:
        raise HTTPException(status_code=404, detail="批号不存在")
    ex_entries = (await db.execute(
        ex_query.order_by(YarnExEntry.entry_date, YarnExEntry.id)
    )).scalars().all()

    # 只列出有入库记录的类别下的出库记录，与 summarize_lot 的计算一致
    stocked_categories = {e.category_id for e in in_entries}
    ex_entries = [e for e in ex_entries if e.category_id in stocked_categories]

    totals = summarize_lot(lot_no, in_entries, ex_entries, category_id=category_id)
    return LotDetailResponse(
        lot_no=lot_no,
        category_id=category_id,
        total_weight=totals.total_weight,
        available_weight=totals.available_weight,
        in_entries=[build_in_entry_response(e) for e in in_entries],
        ex_entries=[build_ex_entry_response(e) for e in ex_entries],
    )
