"""认证Schema"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from yarnstock.schemas.user import UserResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class InviteRequest(BaseModel):
    """邀请用户注册"""
    email: EmailStr
    role_id: Optional[int] = Field(None, description="注册后使用的角色")

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class RegisterRequest(BaseModel):
    """通过邀请链接完成注册"""
    token: str = Field(..., min_length=1)
    password: str = Field(..., description="密码，至少6位")
    name: Optional[str] = Field(None, max_length=100)
    profile_pic: Optional[str] = Field(None, max_length=500, description="头像地址")


class TokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., description="新密码，至少6位")


class AuthResponse(BaseModel):
    """登录/注册成功"""
    token: str
    user: UserResponse


class VerifyResponse(BaseModel):
    valid: bool
    user: UserResponse


class TokenValidateResponse(BaseModel):
    valid: bool
    email: Optional[str] = None
    type: Optional[str] = None
    message: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
    email: Optional[str] = None


class DefaultUserResponse(BaseModel):
    message: str
    email: str
    exists: bool


class NavigationItem(BaseModel):
    name: str
    href: Optional[str] = None
    icon: Optional[str] = None
    children: Optional[List["NavigationItem"]] = None


NavigationItem.model_rebuild()


class NavigationResponse(BaseModel):
    """当前用户可见的菜单和权限树"""
    items: List[NavigationItem]
    permissions: Optional[Dict[str, Any]] = None


class AccessResponse(BaseModel):
    route: str
    allowed: bool
