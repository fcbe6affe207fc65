"""首页看板Schema"""
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, field_validator

from yarnstock.schemas.common import to_float
from yarnstock.schemas.yarn_entry import YarnExEntryResponse, YarnInEntryResponse


class WeightModel(BaseModel):
    """重量字段统一输出为 float"""

    @field_validator("*", mode="before")
    @classmethod
    def fix_decimal(cls, v: Any) -> Any:
        if isinstance(v, Decimal):
            return to_float(v)
        return v

    class Config:
        from_attributes = True


class LotSummaryResponse(WeightModel):
    lot_no: str
    total_weight: float
    used_weight: float
    available_weight: float


class CategorySummaryResponse(WeightModel):
    category_id: int
    category_name: str
    total_weight: float
    available_weight: float
    lots: List[LotSummaryResponse]


class DashboardSummaryResponse(WeightModel):
    total_weight: float
    available_weight: float
    categories: List[CategorySummaryResponse]


class LotDetailResponse(WeightModel):
    """批次详情：入库/出库明细和合计"""
    lot_no: str
    category_id: Optional[int] = None
    total_weight: float
    available_weight: float
    in_entries: List[YarnInEntryResponse]
    ex_entries: List[YarnExEntryResponse]
