# app/domains/crm/schemas.py

"""
'crm' 도메인의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional
from datetime import datetime

from pydantic import BaseModel, Field, field_validator


def _normalize_code(value):
    if isinstance(value, str):
        return value.strip().upper()
    return value


class CustomerCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=20, pattern=r"^[A-Za-z0-9-]+$")
    name: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = Field(None, max_length=255)
    is_active: bool = True

    _code = field_validator("code", mode="before")(_normalize_code)


class CustomerUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=20, pattern=r"^[A-Za-z0-9-]+$")
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None

    _code = field_validator("code", mode="before")(_normalize_code)


class CustomerRead(BaseModel):
    id: int
    code: str
    name: str
    address: Optional[str] = None
    logo_url: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PurchaseOrderCreate(BaseModel):
    customer_id: int
    po_number: str = Field(..., min_length=1, max_length=50)
    line_number: Optional[str] = Field(None, max_length=20)
    part_number: Optional[str] = Field(None, max_length=50)
    drawing_rev: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = Field(None, max_length=255)


class PurchaseOrderRead(PurchaseOrderCreate):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
