"""往来单位Schema"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class PartyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="名称")
    mobile_no: str = Field(..., min_length=1, max_length=20, description="手机号")
    email_id: EmailStr = Field(..., description="邮箱")

    @field_validator("name", "mobile_no")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("不能为空")
        return v

    @field_validator("email_id")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class PartyCreate(PartyBase):
    pass


class PartyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    mobile_no: Optional[str] = Field(None, min_length=1, max_length=20)
    email_id: Optional[EmailStr] = None

    @field_validator("name", "mobile_no")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("不能为空")
        return v

    @field_validator("email_id")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class PartyResponse(BaseModel):
    id: int
    name: str
    mobile_no: str
    email_id: str
    created_by: int
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PartyListResponse(BaseModel):
    data: List[PartyResponse]
    total: int
