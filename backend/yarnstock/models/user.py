from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from yarnstock.db.base import Base

# 延迟导入避免循环依赖
if TYPE_CHECKING:
    from yarnstock.models.role import Role

# 用户状态
USER_STATUS_INVITED = "invited"  # 已邀请，尚未设置密码
USER_STATUS_JOINED = "joined"    # 已完成注册

# 最多保留的已使用重置令牌数量
MAX_USED_RESET_TOKENS = 10


class User(Base):
    __tablename__ = "sys_user"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=True)
    # 邀请状态的用户没有密码
    password = Column(String(255), nullable=True)
    profile_pic = Column(String(500), nullable=True, comment="头像地址")
    role_id = Column(Integer, ForeignKey("sys_roles.id"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=USER_STATUS_INVITED, comment="invited/joined")
    is_deleted = Column(Boolean, nullable=False, default=False, comment="软删除（仅已注册用户）")
    # 已使用过的重置密码令牌（SHA-256），防止重复使用
    used_reset_tokens = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 权限判断每次都要用到角色，随用户一起加载
    role = relationship("Role", foreign_keys=[role_id], back_populates="users", lazy="selectin")

    def __repr__(self):
        return f"<User {self.email} ({self.status})>"

    @property
    def is_joined(self) -> bool:
        return self.status == USER_STATUS_JOINED

    @property
    def is_active(self) -> bool:
        return not self.is_deleted

    @property
    def display_name(self) -> str:
        """显示名称，未填写姓名时使用邮箱"""
        return self.name or self.email

    @property
    def permissions(self):
        """当前角色的权限树，没有角色时为 None"""
        return self.role.permissions if self.role else None

    def remember_reset_token(self, token_hash: str) -> None:
        """记录已使用的重置令牌，只保留最近的若干个"""
        tokens = list(self.used_reset_tokens or [])
        if token_hash in tokens:
            return
        tokens.append(token_hash)
        self.used_reset_tokens = tokens[-MAX_USED_RESET_TOKENS:]
