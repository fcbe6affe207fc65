"""
纱线出库记录
出库只按 (类别, 批号) 关联批次，不对应到具体某一条入库记录
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL, Index
from sqlalchemy.orm import relationship
from yarnstock.db.base import Base


class YarnExEntry(Base):
    """出库记录"""
    __tablename__ = "yarn_ex_entries"
    __table_args__ = (
        Index("ix_yarn_ex_entries_category_lot", "category_id", "lot_no"),
    )

    id = Column(Integer, primary_key=True, index=True)

    entry_date = Column(DateTime, nullable=False, index=True, comment="登记日期")
    category_id = Column(Integer, ForeignKey("yarn_categories.id"), nullable=False, index=True)
    lot_no = Column(String(50), nullable=False, index=True, comment="批号")
    taking_weight_in_kg = Column(DECIMAL(12, 3), nullable=False, default=Decimal("0.000"), comment="出库重量(kg)")

    # 审计字段
    created_by = Column(Integer, ForeignKey("sys_user.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    category = relationship("YarnCategory", back_populates="ex_entries")
    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<YarnExEntry {self.lot_no}: -{self.taking_weight_in_kg}kg>"
