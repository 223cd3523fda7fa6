# app/domains/sup/schemas.py

"""
'sup' 도메인 (공급업체 관리)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
코드는 공백 제거 후 대문자로, 이메일은 소문자로 정규화합니다.
"""

from typing import Optional, List, Literal
from datetime import date, datetime

from pydantic import BaseModel, Field, EmailStr, field_validator


CODE_PATTERN = r"^[A-Za-z0-9-]+$"


class PageMeta(BaseModel):
    """목록 응답의 페이지 정보"""
    total: int
    page: int
    limit: int
    total_pages: int


def _normalize_code(value):
    if isinstance(value, str):
        return value.strip().upper()
    return value


def _normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _strip(value):
    if isinstance(value, str):
        return value.strip()
    return value


class SupplierBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=20, pattern=CODE_PATTERN, description="공급업체 코드")
    name: str = Field(..., min_length=1, max_length=100, description="공급업체명")
    contact_person: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=1, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    is_active: bool = True

    _code = field_validator("code", mode="before")(_normalize_code)
    _email = field_validator("email", mode="before")(_normalize_email)
    _name = field_validator("name", "contact_person", "phone", "address", mode="before")(_strip)


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=20, pattern=CODE_PATTERN)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    contact_person: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=1, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None

    _code = field_validator("code", mode="before")(_normalize_code)
    _email = field_validator("email", mode="before")(_normalize_email)
    _name = field_validator("name", "contact_person", "phone", "address", mode="before")(_strip)


class SupplierRead(BaseModel):
    id: int
    code: str
    name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SupplierListItem(SupplierRead):
    heat_count: int = 0


class SupplierHeatSummary(BaseModel):
    """공급업체 상세 조회 시 포함되는 히트 요약"""
    id: int
    heat_no: str
    material_grade: str
    received_on: date
    quantity: float
    unit: str

    class Config:
        from_attributes = True


class SupplierReadWithHeats(SupplierRead):
    heat_count: int = 0
    heats: List[SupplierHeatSummary] = []


class SupplierPage(BaseModel):
    data: List[SupplierListItem]
    meta: PageMeta


class SupplierQuery(BaseModel):
    """목록 조회 파라미터"""
    code: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    sort_by: Literal["code", "name", "email", "phone", "created_at", "updated_at"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
