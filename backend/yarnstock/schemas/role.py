"""角色Schema"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


# 权限树（结构固定，未提交的权限默认为 False）
class ViewPermission(BaseModel):
    view: bool = False


class CreatePermission(BaseModel):
    create: bool = False


class CrudPermission(BaseModel):
    view: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False


class MasterPermissions(BaseModel):
    category: CrudPermission = Field(default_factory=CrudPermission)
    party: CrudPermission = Field(default_factory=CrudPermission)


class AccountsPermissions(BaseModel):
    user: CrudPermission = Field(default_factory=CrudPermission)
    role: CrudPermission = Field(default_factory=CrudPermission)


class RolePermissions(BaseModel):
    """角色权限树"""
    dashboard: ViewPermission = Field(default_factory=ViewPermission)
    inEntry: CreatePermission = Field(default_factory=CreatePermission)
    outEntry: CreatePermission = Field(default_factory=CreatePermission)
    master: MasterPermissions = Field(default_factory=MasterPermissions)
    accounts: AccountsPermissions = Field(default_factory=AccountsPermissions)


class RoleBase(BaseModel):
    """角色基础字段"""
    name: str = Field(..., min_length=1, max_length=50, description="角色名称")
    permissions: RolePermissions = Field(default_factory=RolePermissions, description="权限树")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("角色名称不能为空")
        return v


class RoleCreate(RoleBase):
    """创建角色"""
    pass


class RoleUpdate(BaseModel):
    """更新角色"""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    permissions: Optional[RolePermissions] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("角色名称不能为空")
        return v


class RoleResponse(BaseModel):
    """角色响应"""
    id: int
    name: str
    permissions: Dict[str, Any]
    is_admin: bool = False
    created_by: Optional[int] = None
    created_by_name: Optional[str] = None
    user_count: int = 0  # 使用该角色的用户数
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RoleListResponse(BaseModel):
    """角色列表响应"""
    data: List[RoleResponse]
    total: int
