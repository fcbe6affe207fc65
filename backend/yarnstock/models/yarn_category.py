"""纱线类别模型"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from yarnstock.db.base import Base

DEFAULT_NO_OF_CONES = 6
DEFAULT_WEIGHT_PER_BOX = Decimal("36.00")


class YarnCategory(Base):
    """纱线类别

    每箱锥筒数、每箱重量只用于录入时的默认值和显示，
    库存计算以入库/出库记录的实际重量为准。
    """
    __tablename__ = "yarn_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True, comment="类别名称")
    description = Column(String(500), nullable=True, comment="描述")
    no_of_cones = Column(Integer, nullable=False, default=DEFAULT_NO_OF_CONES, comment="每箱锥筒数")
    weight_per_box = Column(DECIMAL(12, 3), nullable=False, default=DEFAULT_WEIGHT_PER_BOX, comment="每箱重量(kg)")

    created_by = Column(Integer, ForeignKey("sys_user.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    creator = relationship("User", foreign_keys=[created_by])
    in_entries = relationship("YarnInEntry", back_populates="category")
    ex_entries = relationship("YarnExEntry", back_populates="category")

    def __repr__(self):
        return f"<YarnCategory {self.id}: {self.name}>"
