"""纱线入库/出库Schema"""
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from yarnstock.schemas.common import check_weight, to_float


def _strip_lot_no(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("批号不能为空")
    return v


# ========== 入库 ==========

class YarnInEntryBase(BaseModel):
    entry_date: datetime = Field(..., description="登记日期")
    name: Optional[str] = Field(None, max_length=100)
    category_id: int
    lot_no: str = Field(..., min_length=1, max_length=50, description="批号")
    purchase_date: datetime = Field(..., description="采购日期")
    party_id: int
    no_of_boxes: int = Field(..., ge=0, description="箱数")
    weight_in_kg: Decimal = Field(..., description="重量(kg)，最多3位小数")

    @field_validator("lot_no")
    @classmethod
    def strip_lot_no(cls, v: str) -> str:
        return _strip_lot_no(v)

    @field_validator("weight_in_kg")
    @classmethod
    def check_weight_in_kg(cls, v: Decimal) -> Decimal:
        return check_weight(v, "重量")


class YarnInEntryCreate(YarnInEntryBase):
    pass


class YarnInEntryUpdate(BaseModel):
    entry_date: Optional[datetime] = None
    name: Optional[str] = Field(None, max_length=100)
    category_id: Optional[int] = None
    lot_no: Optional[str] = Field(None, min_length=1, max_length=50)
    purchase_date: Optional[datetime] = None
    party_id: Optional[int] = None
    no_of_boxes: Optional[int] = Field(None, ge=0)
    weight_in_kg: Optional[Decimal] = None

    @field_validator("lot_no")
    @classmethod
    def strip_lot_no(cls, v: Optional[str]) -> Optional[str]:
        return _strip_lot_no(v)

    @field_validator("weight_in_kg")
    @classmethod
    def check_weight_in_kg(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return check_weight(v, "重量")


class YarnInEntryResponse(BaseModel):
    id: int
    entry_date: datetime
    name: Optional[str] = None
    category_id: int
    category_name: Optional[str] = None
    lot_no: str
    purchase_date: datetime
    party_id: int
    party_name: Optional[str] = None
    no_of_boxes: int
    weight_in_kg: float
    created_by: int
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("weight_in_kg", mode="before")
    @classmethod
    def fix_decimal(cls, v: Any) -> float:
        return to_float(v)

    class Config:
        from_attributes = True


class YarnInEntryListResponse(BaseModel):
    data: List[YarnInEntryResponse]
    total: int
    page: int
    limit: int


class AvailableLotResponse(BaseModel):
    """可出库批次"""
    lot_no: str
    available_boxes: int
    available_weight_in_kg: float

    @field_validator("available_weight_in_kg", mode="before")
    @classmethod
    def fix_decimal(cls, v: Any) -> float:
        return to_float(v)

    class Config:
        from_attributes = True


# ========== 出库 ==========

class YarnExEntryBase(BaseModel):
    entry_date: datetime = Field(..., description="登记日期")
    category_id: int
    lot_no: str = Field(..., min_length=1, max_length=50, description="批号")
    taking_weight_in_kg: Decimal = Field(..., description="出库重量(kg)，最多3位小数")

    @field_validator("lot_no")
    @classmethod
    def strip_lot_no(cls, v: str) -> str:
        return _strip_lot_no(v)

    @field_validator("taking_weight_in_kg")
    @classmethod
    def check_taking_weight(cls, v: Decimal) -> Decimal:
        return check_weight(v, "出库重量")


class YarnExEntryCreate(YarnExEntryBase):
    pass


class YarnExEntryUpdate(BaseModel):
    entry_date: Optional[datetime] = None
    category_id: Optional[int] = None
    lot_no: Optional[str] = Field(None, min_length=1, max_length=50)
    taking_weight_in_kg: Optional[Decimal] = None

    @field_validator("lot_no")
    @classmethod
    def strip_lot_no(cls, v: Optional[str]) -> Optional[str]:
        return _strip_lot_no(v)

    @field_validator("taking_weight_in_kg")
    @classmethod
    def check_taking_weight(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return check_weight(v, "出库重量")


class YarnExEntryResponse(BaseModel):
    id: int
    entry_date: datetime
    category_id: int
    category_name: Optional[str] = None
    lot_no: str
    taking_weight_in_kg: float
    created_by: int
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("taking_weight_in_kg", mode="before")
    @classmethod
    def fix_decimal(cls, v: Any) -> float:
        return to_float(v)

    class Config:
        from_attributes = True


class YarnExEntryListResponse(BaseModel):
    data: List[YarnExEntryResponse]
    total: int
    page: int
    limit: int
