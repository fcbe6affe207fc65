"""
纱线入库记录
同一类别下相同批号（lot_no）的入库记录合起来构成一个批次
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL, Index
from sqlalchemy.orm import relationship
from yarnstock.db.base import Base


class YarnInEntry(Base):
    """入库记录"""
    __tablename__ = "yarn_in_entries"
    __table_args__ = (
        Index("ix_yarn_in_entries_category_lot", "category_id", "lot_no"),
    )

    id = Column(Integer, primary_key=True, index=True)

    entry_date = Column(DateTime, nullable=False, index=True, comment="登记日期")
    name = Column(String(100), nullable=True, comment="名称")
    category_id = Column(Integer, ForeignKey("yarn_categories.id"), nullable=False, index=True)
    lot_no = Column(String(50), nullable=False, index=True, comment="批号")
    purchase_date = Column(DateTime, nullable=False, comment="采购日期")
    party_id = Column(Integer, ForeignKey("parties.id"), nullable=False, index=True)

    # === 数量 ===
    no_of_boxes = Column(Integer, nullable=False, default=0, comment="箱数")
    weight_in_kg = Column(DECIMAL(12, 3), nullable=False, default=Decimal("0.000"), comment="重量(kg)")

    # 审计字段
    created_by = Column(Integer, ForeignKey("sys_user.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    category = relationship("YarnCategory", back_populates="in_entries")
    party = relationship("Party", back_populates="in_entries")
    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<YarnInEntry {self.lot_no}: {self.no_of_boxes}箱 {self.weight_in_kg}kg>"
