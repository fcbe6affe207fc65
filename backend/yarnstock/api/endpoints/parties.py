"""往来单位API"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from yarnstock.core.deps import get_current_user, get_db, require_permission
from yarnstock.models.party import Party
from yarnstock.models.user import User
from yarnstock.models.yarn_in_entry import YarnInEntry
from yarnstock.schemas.auth import MessageResponse
from yarnstock.schemas.party import PartyCreate, PartyListResponse, PartyResponse, PartyUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_party(db: AsyncSession, party_id: int) -> Optional[Party]:
    result = await db.execute(
        select(Party)
        .options(selectinload(Party.creator))
        .where(Party.id == party_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def build_party_response(party: Party) -> PartyResponse:
    resp = PartyResponse.model_validate(party)
    resp.created_by_name = party.creator.display_name if party.creator else None
    return resp


@router.get("/", response_model=PartyListResponse)
async def list_parties(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    search: Optional[str] = Query(None, description="按名称、手机号、邮箱搜索"),
) -> Any:
    """获取往来单位列表"""
    query = select(Party).options(selectinload(Party.creator))
    if search and search.strip():
        keyword = f"%{search.strip()}%"
        query = query.where(or_(
            Party.name.ilike(keyword),
            Party.mobile_no.ilike(keyword),
            Party.email_id.ilike(keyword),
        ))
    query = query.order_by(Party.created_at.desc(), Party.id.desc())
    parties = (await db.execute(query)).scalars().all()

    return PartyListResponse(
        data=[build_party_response(p) for p in parties],
        total=len(parties),
    )


@router.get("/{party_id}", response_model=PartyResponse)
async def get_party(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    party_id: int,
) -> Any:
    """获取往来单位详情"""
    party = await _get_party(db, party_id)
    if not party:
        raise HTTPException(status_code=404, detail="往来单位不存在")
    return build_party_response(party)


@router.post("/", response_model=PartyResponse)
async def create_party(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("master.party.create")),
    party_in: PartyCreate,
) -> Any:
    """创建往来单位"""
    party = Party(
        **party_in.model_dump(),
        created_by=current_user.id,
    )
    db.add(party)
    await db.commit()

    logger.info(f"{current_user.email} 创建往来单位: {party.name}")
    return build_party_response(await _get_party(db, party.id))


@router.put("/{party_id}", response_model=PartyResponse)
async def update_party(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("master.party.edit")),
    party_id: int,
    party_in: PartyUpdate,
) -> Any:
    """更新往来单位"""
    party = await _get_party(db, party_id)
    if not party:
        raise HTTPException(status_code=404, detail="往来单位不存在")

    update_data = party_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is not None:
            setattr(party, field, value)
    await db.commit()

    return build_party_response(await _get_party(db, party_id))


@router.delete("/{party_id}", response_model=MessageResponse)
async def delete_party(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("master.party.delete")),
    party_id: int,
) -> Any:
    """删除往来单位，已有入库记录时不能删除"""
    party = await db.get(Party, party_id)
    if not party:
        raise HTTPException(status_code=404, detail="往来单位不存在")

    in_count = (await db.execute(
        select(func.count(YarnInEntry.id)).where(YarnInEntry.party_id == party_id)
    )).scalar() or 0
    if in_count > 0:
        raise HTTPException(
            status_code=400,
            detail=f"该往来单位已被 {in_count} 条入库记录引用，无法删除"
        )

    await db.delete(party)
    await db.commit()
    logger.info(f"{current_user.email} 删除往来单位: {party.name}")

    return MessageResponse(message="删除成功")
