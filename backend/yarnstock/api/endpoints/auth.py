"""登录、邀请注册、找回密码、菜单权限API"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from yarnstock.core.config import settings
from yarnstock.core.deps import get_current_user, get_db, require_permission
from yarnstock.core.email import send_password_reset_email, send_registration_email
from yarnstock.core.permissions import filter_navigation, has_permission
from yarnstock.core.security import (
    TOKEN_TYPE_AUTH, TOKEN_TYPE_REGISTER, TOKEN_TYPE_RESET,
    create_token, decode_token, get_password_hash, hash_token, verify_password,
)
from yarnstock.db.init_db import ensure_admin_role
from yarnstock.models.role import Role
from yarnstock.models.user import USER_STATUS_INVITED, USER_STATUS_JOINED, User
from yarnstock.schemas.auth import (
    AccessResponse, AuthResponse, DefaultUserResponse, ForgotPasswordRequest,
    InviteRequest, LoginRequest, MessageResponse, NavigationResponse,
    RegisterRequest, ResetPasswordRequest, TokenRequest, TokenValidateResponse,
    VerifyResponse,
)
from yarnstock.schemas.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_PASSWORD_LENGTH = 6
RESET_LINK_SENT_MESSAGE = "如果该邮箱已注册，重置密码链接已发送"


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """按邮箱查找用户（包含已删除的用户）"""
    result = await db.execute(
        select(User).where(User.email == email.lower()).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def check_password_length(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"密码至少{MIN_PASSWORD_LENGTH}位")


@router.post("/login", response_model=AuthResponse)
async def login(
    *,
    db: AsyncSession = Depends(get_db),
    login_in: LoginRequest,
) -> Any:
    """邮箱密码登录"""
    user = await get_user_by_email(db, login_in.email)
    if (
        not user
        or user.is_deleted
        or not user.is_joined
        or not verify_password(login_in.password, user.password)
    ):
        logger.info(f"登录失败: {login_in.email}")
        raise HTTPException(status_code=401, detail="邮箱或密码错误")

    logger.info(f"用户登录: {user.email}")
    return AuthResponse(
        token=create_token(user.email, TOKEN_TYPE_AUTH),
        user=UserResponse.model_validate(user),
    )


@router.post("/invite", response_model=MessageResponse)
async def invite_user(
    *,
    db: AsyncSession = Depends(get_db),
    background_tasks: BackgroundTasks,
    invite_in: InviteRequest,
    current_user: User = Depends(require_permission("accounts.user.create")),
) -> Any:
    """邀请用户注册，发送带注册链接的邮件"""
    existing = await get_user_by_email(db, invite_in.email)
    if existing and not existing.is_deleted:
        raise HTTPException(status_code=400, detail="该邮箱已注册")

    if invite_in.role_id is not None and not await db.get(Role, invite_in.role_id):
        raise HTTPException(status_code=400, detail="角色不存在")

    # 已删除的用户重新注册时恢复原账号，不新建记录
    if existing is None:
        db.add(User(
            email=invite_in.email,
            status=USER_STATUS_INVITED,
            role_id=invite_in.role_id,
        ))
        await db.commit()
    elif invite_in.role_id is not None:
        existing.role_id = invite_in.role_id
        await db.commit()

    token = create_token(invite_in.email, TOKEN_TYPE_REGISTER)
    send_registration_email(background_tasks, invite_in.email, token)
    logger.info(f"{current_user.email} 邀请用户: {invite_in.email}")

    return MessageResponse(message="邀请已发送", email=invite_in.email)


@router.post("/register", response_model=AuthResponse)
async def register(
    *,
    db: AsyncSession = Depends(get_db),
    register_in: RegisterRequest,
) -> Any:
    """通过邀请链接完成注册"""
    payload = decode_token(register_in.token)
    if not payload or payload.get("type") != TOKEN_TYPE_REGISTER:
        raise HTTPException(status_code=400, detail="链接无效或已过期")
    check_password_length(register_in.password)

    email = payload["email"].lower()
    user = await get_user_by_email(db, email)
    if user and user.password and not user.is_deleted:
        raise HTTPException(status_code=400, detail="用户已注册")

    if user is None:
        user = User(email=email)
        db.add(user)

    # 邀请中的用户补全信息，已删除的用户恢复
    user.password = get_password_hash(register_in.password)
    user.name = register_in.name or user.name
    if register_in.profile_pic:
        user.profile_pic = register_in.profile_pic
    user.status = USER_STATUS_JOINED
    user.is_deleted = False
    await db.commit()

    user = await get_user_by_email(db, email)
    logger.info(f"用户完成注册: {email}")
    return AuthResponse(
        token=create_token(email, TOKEN_TYPE_AUTH),
        user=UserResponse.model_validate(user),
    )


@router.get("/verify", response_model=VerifyResponse)
async def verify(
    *,
    current_user: User = Depends(get_current_user),
) -> Any:
    """校验登录令牌，返回当前用户"""
    return VerifyResponse(valid=True, user=UserResponse.model_validate(current_user))


@router.post("/validate-token", response_model=TokenValidateResponse)
async def validate_token(
    *,
    db: AsyncSession = Depends(get_db),
    token_in: TokenRequest,
) -> Any:
    """检查注册/重置链接中的令牌是否还能使用"""
    payload = decode_token(token_in.token)
    if not payload:
        return TokenValidateResponse(valid=False, message="链接无效或已过期")

    email = payload["email"].lower()
    token_type = payload["type"]

    if token_type == TOKEN_TYPE_RESET:
        user = await get_user_by_email(db, email)
        if user and hash_token(token_in.token) in (user.used_reset_tokens or []):
            return TokenValidateResponse(valid=False, message="该重置链接已使用")

    if token_type == TOKEN_TYPE_REGISTER:
        user = await get_user_by_email(db, email)
        if user and user.is_joined and not user.is_deleted:
            return TokenValidateResponse(valid=False, message="用户已注册，请直接登录")

    return TokenValidateResponse(valid=True, email=email, type=token_type)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    *,
    db: AsyncSession = Depends(get_db),
    background_tasks: BackgroundTasks,
    forgot_in: ForgotPasswordRequest,
) -> Any:
    """发送重置密码邮件，不暴露邮箱是否存在"""
    user = await get_user_by_email(db, forgot_in.email)
    if user and user.is_joined and not user.is_deleted:
        token = create_token(user.email, TOKEN_TYPE_RESET)
        send_password_reset_email(background_tasks, user.email, token)
        logger.info(f"发送重置密码邮件: {user.email}")
    else:
        logger.info(f"重置密码邮箱不存在: {forgot_in.email}")

    return MessageResponse(message=RESET_LINK_SENT_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    *,
    db: AsyncSession = Depends(get_db),
    reset_in: ResetPasswordRequest,
) -> Any:
    """使用重置链接设置新密码，每个链接只能使用一次"""
    check_password_length(reset_in.password)

    payload = decode_token(reset_in.token)
    if not payload or payload.get("type") != TOKEN_TYPE_RESET:
        raise HTTPException(status_code=400, detail="链接无效或已过期")

    user = await get_user_by_email(db, payload["email"])
    if not user or user.is_deleted:
        raise HTTPException(status_code=404, detail="用户不存在")

    token_hash = hash_token(reset_in.token)
    if token_hash in (user.used_reset_tokens or []):
        raise HTTPException(status_code=400, detail="该重置链接已使用，请重新申请")

    user.password = get_password_hash(reset_in.password)
    user.remember_reset_token(token_hash)
    await db.commit()

    logger.info(f"用户重置密码: {user.email}")
    return MessageResponse(message="密码已重置")


@router.get("/check-default-user", response_model=DefaultUserResponse)
async def check_default_user(
    *,
    db: AsyncSession = Depends(get_db),
    background_tasks: BackgroundTasks,
) -> Any:
    """
    检查首个管理员账号

    DEFAULT_USER_EMAIL 对应的用户不存在时，创建管理员邀请并发送注册邮件
    """
    email = settings.DEFAULT_USER_EMAIL
    if not email:
        raise HTTPException(status_code=400, detail="未配置 DEFAULT_USER_EMAIL")
    email = email.lower()

    user = await get_user_by_email(db, email)
    if user and not user.is_deleted:
        return DefaultUserResponse(message="默认用户已存在", email=email, exists=True)

    admin_role = await ensure_admin_role(db)
    if user is None:
        db.add(User(email=email, status=USER_STATUS_INVITED, role_id=admin_role.id))
    else:
        user.role_id = admin_role.id
    await db.commit()

    token = create_token(email, TOKEN_TYPE_REGISTER)
    send_registration_email(background_tasks, email, token)
    logger.info(f"已邀请默认管理员: {email}")

    return DefaultUserResponse(message="已发送默认用户邀请", email=email, exists=False)


@router.get("/navigation", response_model=NavigationResponse)
async def get_navigation(
    *,
    current_user: User = Depends(get_current_user),
) -> Any:
    """当前用户可见的菜单"""
    return NavigationResponse(
        items=filter_navigation(current_user.permissions),
        permissions=current_user.permissions,
    )


@router.get("/access", response_model=AccessResponse)
async def check_access(
    *,
    current_user: User = Depends(get_current_user),
    route: str = Query(..., description="页面路由，如 /master/party"),
) -> Any:
    """判断当前用户能否访问某个页面"""
    return AccessResponse(route=route, allowed=has_permission(current_user.permissions, route))
