"""
角色模型
RBAC权限管理的核心
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import relationship
from yarnstock.db.base import Base

# 系统管理员角色名称，不可编辑、不可删除
ADMIN_ROLE_NAME = "Admin"


class Role(Base):
    """角色模型"""
    __tablename__ = "sys_roles"

    id = Column(Integer, primary_key=True, index=True)

    # 基本信息
    name = Column(String(50), nullable=False, unique=True, comment="角色名称")

    # 权限树（嵌套JSON）
    # 如：{"dashboard": {"view": true}, "master": {"party": {"view": true, "create": false}}}
    permissions = Column(JSON, nullable=False, default=dict, comment="权限树")

    # 审计字段
    # 不建外键：用户表已经外键引用角色表
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    users = relationship("User", foreign_keys="User.role_id", back_populates="role")
    creator = relationship(
        "User", primaryjoin="foreign(Role.created_by) == User.id", viewonly=True
    )

    def __repr__(self):
        return f"<Role {self.id}: {self.name}>"

    @property
    def is_admin(self) -> bool:
        """是否系统管理员角色"""
        return self.name == ADMIN_ROLE_NAME
