"""个人资料API"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from yarnstock.api.endpoints.auth import check_password_length
from yarnstock.core.deps import get_current_user, get_db
from yarnstock.core.security import get_password_hash
from yarnstock.models.user import User
from yarnstock.schemas.auth import MessageResponse
from yarnstock.schemas.user import ChangePasswordRequest, ProfileUpdate, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    *,
    current_user: User = Depends(get_current_user),
) -> Any:
    """获取当前用户资料"""
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    profile_in: ProfileUpdate,
) -> Any:
    """修改姓名、头像"""
    update_data = profile_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(current_user, field, value)
    await db.commit()

    result = await db.execute(
        select(User).where(User.id == current_user.id).execution_options(populate_existing=True)
    )
    return UserResponse.model_validate(result.scalar_one())


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    password_in: ChangePasswordRequest,
) -> Any:
    """修改密码"""
    if not password_in.new_password or not password_in.confirm_password:
        raise HTTPException(status_code=400, detail="请输入新密码并确认")
    check_password_length(password_in.new_password)
    if password_in.new_password != password_in.confirm_password:
        raise HTTPException(status_code=400, detail="两次输入的密码不一致")

    current_user.password = get_password_hash(password_in.new_password)
    await db.commit()
    logger.info(f"用户修改密码: {current_user.email}")

    return MessageResponse(message="密码修改成功")
