"""纱线类别Schema"""
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from yarnstock.schemas.common import decimal_places, to_float


def _format_weight_per_box(v: Optional[Decimal]) -> Optional[Decimal]:
    """每箱重量：整数或 2~3 位小数，整数统一保存为 2 位小数"""
    if v is None:
        return v
    if v < 0:
        raise ValueError("每箱重量不能为负数")
    places = decimal_places(v)
    if places == 0:
        return v.quantize(Decimal("0.01"))
    if places < 2 or places > 3:
        raise ValueError("每箱重量必须为整数或保留2~3位小数")
    return v


class YarnCategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="类别名称")
    description: Optional[str] = Field(None, max_length=500)
    no_of_cones: int = Field(default=6, ge=0, description="每箱锥筒数")
    weight_per_box: Decimal = Field(default=Decimal("36.00"), description="每箱重量(kg)")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("类别名称不能为空")
        return v

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() or None if v else None

    @field_validator("weight_per_box")
    @classmethod
    def check_weight_per_box(cls, v: Decimal) -> Decimal:
        return _format_weight_per_box(v)


class YarnCategoryCreate(YarnCategoryBase):
    pass


class YarnCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    no_of_cones: Optional[int] = Field(None, ge=0)
    weight_per_box: Optional[Decimal] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("类别名称不能为空")
        return v

    @field_validator("weight_per_box")
    @classmethod
    def check_weight_per_box(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _format_weight_per_box(v)


class YarnCategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    no_of_cones: int
    weight_per_box: float
    created_by: int
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("weight_per_box", mode="before")
    @classmethod
    def fix_decimal(cls, v: Any) -> float:
        return to_float(v)

    class Config:
        from_attributes = True


class YarnCategoryListResponse(BaseModel):
    data: List[YarnCategoryResponse]
    total: int
