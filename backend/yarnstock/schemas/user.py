"""用户Schema"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RoleBrief(BaseModel):
    """用户所属角色（简要）"""
    id: int
    name: str

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """用户响应（不含密码）"""
    id: int
    email: str
    name: Optional[str] = None
    profile_pic: Optional[str] = None
    status: str
    is_deleted: bool = False
    role_id: Optional[int] = None
    role: Optional[RoleBrief] = None
    permissions: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """用户列表响应"""
    data: List[UserResponse]
    total: int


class UserRoleUpdate(BaseModel):
    """修改用户角色，role_id 为空表示取消角色"""
    role_id: Optional[int] = None


class ProfileUpdate(BaseModel):
    """修改个人资料"""
    name: Optional[str] = Field(None, max_length=100, description="姓名")
    profile_pic: Optional[str] = Field(None, max_length=500, description="头像地址")


class ChangePasswordRequest(BaseModel):
    """修改密码"""
    new_password: str = Field(..., description="新密码")
    confirm_password: str = Field(..., description="确认密码")
