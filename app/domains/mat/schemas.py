# app/domains/mat/schemas.py

"""
'mat' 도메인 (원자재 히트)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, List, Literal
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from app.domains.sup.schemas import PageMeta
from app.domains.lims.models import SampleState, Priority
from . import models as mat_models


HEAT_NO_PATTERN = r"^[A-Za-z0-9\-/.]+$"


def _not_future(value: Optional[date]) -> Optional[date]:
    if value is not None and value > date.today():
        raise ValueError("Received date cannot be in the future")
    return value


def _three_decimals(value: Optional[float]) -> Optional[float]:
    if value is not None and round(value, 3) != value:
        raise ValueError("Quantity allows at most 3 decimal places")
    return value


def _strip(value):
    if isinstance(value, str):
        return value.strip()
    return value


class HeatCreate(BaseModel):
    heat_no: str = Field(..., min_length=1, max_length=50, pattern=HEAT_NO_PATTERN, description="히트 번호")
    supplier_id: int = Field(..., gt=0)
    material_grade: str = Field(..., min_length=1, max_length=100)
    received_on: date
    quantity: float = Field(..., ge=0.001, le=999999.999)
    unit: mat_models.HeatUnit = mat_models.HeatUnit.KG
    po_number: Optional[str] = Field(None, max_length=50)
    grn_number: Optional[str] = Field(None, max_length=50)
    mtc_number: Optional[str] = Field(None, max_length=50)
    production_order: Optional[str] = Field(None, max_length=50)

    @field_validator("heat_no", mode="before")
    @classmethod
    def normalize_heat_no(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    _strings = field_validator(
        "material_grade", "po_number", "grn_number", "mtc_number", "production_order", mode="before"
    )(_strip)
    _received_on = field_validator("received_on")(_not_future)
    _quantity = field_validator("quantity")(_three_decimals)


class HeatUpdate(BaseModel):
    """히트 번호와 공급업체는 수정할 수 없습니다."""
    material_grade: Optional[str] = Field(None, min_length=1, max_length=100)
    received_on: Optional[date] = None
    quantity: Optional[float] = Field(None, ge=0.001, le=999999.999)
    unit: Optional[mat_models.HeatUnit] = None
    po_number: Optional[str] = Field(None, max_length=50)
    grn_number: Optional[str] = Field(None, max_length=50)
    mtc_number: Optional[str] = Field(None, max_length=50)
    production_order: Optional[str] = Field(None, max_length=50)

    _strings = field_validator(
        "material_grade", "po_number", "grn_number", "mtc_number", "production_order", mode="before"
    )(_strip)
    _received_on = field_validator("received_on")(_not_future)
    _quantity = field_validator("quantity")(_three_decimals)


class SupplierBrief(BaseModel):
    id: int
    code: str
    name: str

    class Config:
        from_attributes = True


class HeatRead(BaseModel):
    id: int
    heat_no: str
    supplier_id: int
    material_grade: str
    received_on: date
    quantity: float
    unit: mat_models.HeatUnit
    po_number: Optional[str] = None
    grn_number: Optional[str] = None
    mtc_number: Optional[str] = None
    production_order: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HeatListItem(HeatRead):
    supplier: Optional[SupplierBrief] = None
    sample_count: int = 0


class HeatSampleSummary(BaseModel):
    id: int
    code: str
    state: SampleState
    priority: Priority
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HeatDetail(HeatRead):
    supplier: Optional[SupplierBrief] = None
    sample_count: int = 0
    samples: List[HeatSampleSummary] = []


class HeatPage(BaseModel):
    data: List[HeatListItem]
    meta: PageMeta


class HeatQuery(BaseModel):
    heat_no: Optional[str] = None
    material_grade: Optional[str] = None
    po_number: Optional[str] = None
    grn_number: Optional[str] = None
    supplier_id: Optional[int] = None
    unit: Optional[mat_models.HeatUnit] = None
    received_from: Optional[date] = None
    received_to: Optional[date] = None
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    sort_by: Literal["heat_no", "material_grade", "received_on", "quantity", "created_at", "supplier"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
