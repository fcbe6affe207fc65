"""
往来单位模型
纱线入库时的供货方
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from yarnstock.db.base import Base


class Party(Base):
    """往来单位"""
    __tablename__ = "parties"

    id = Column(Integer, primary_key=True, index=True)

    # 基本信息
    name = Column(String(100), nullable=False, index=True, comment="名称")
    mobile_no = Column(String(20), nullable=False, index=True, comment="手机号")
    email_id = Column(String(255), nullable=False, index=True, comment="邮箱")

    # 审计字段
    created_by = Column(Integer, ForeignKey("sys_user.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    creator = relationship("User", foreign_keys=[created_by])
    in_entries = relationship("YarnInEntry", back_populates="party")

    def __repr__(self):
        return f"<Party {self.id}: {self.name}>"
