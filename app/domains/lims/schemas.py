# app/domains/lims/schemas.py

"""
'lims' 도메인 (시료, 시험, 결과, 특채)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, List, Literal
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.domains.sup.schemas import PageMeta
from . import models as lims_models


def _strip(value):
    if isinstance(value, str):
        return value.strip()
    return value


# =============================================================================
# 1. 시료 (Sample)
# =============================================================================
class SampleCreate(BaseModel):
    source_type: lims_models.SourceType = lims_models.SourceType.HEAT
    heat_id: Optional[int] = None
    batch_no: Optional[str] = Field(None, max_length=50)
    priority: lims_models.Priority = lims_models.Priority.NORMAL
    requested_by: str = Field(..., min_length=1, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)

    _strings = field_validator("batch_no", "requested_by", "notes", mode="before")(_strip)


class SampleUpdate(BaseModel):
    priority: Optional[lims_models.Priority] = None
    requested_by: Optional[str] = Field(None, min_length=1, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)
    state: Optional[lims_models.SampleState] = None

    _strings = field_validator("requested_by", "notes", mode="before")(_strip)


class SampleRead(BaseModel):
    id: int
    code: str
    source_type: lims_models.SourceType
    heat_id: Optional[int] = None
    batch_no: Optional[str] = None
    priority: lims_models.Priority
    requested_by: str
    notes: Optional[str] = None
    state: lims_models.SampleState
    registered_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SampleHeatBrief(BaseModel):
    id: int
    heat_no: str
    material_grade: str
    supplier_name: Optional[str] = None


class SampleListItem(SampleRead):
    heat: Optional[SampleHeatBrief] = None
    test_count: int = 0


class SamplePage(BaseModel):
    data: List[SampleListItem]
    meta: PageMeta


class SampleQuery(BaseModel):
    code: Optional[str] = None
    requested_by: Optional[str] = None
    source_type: Optional[lims_models.SourceType] = None
    heat_id: Optional[int] = None
    priority: Optional[lims_models.Priority] = None
    state: Optional[lims_models.SampleState] = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    sort_by: Literal["created_at", "code", "priority", "state", "requested_by"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


# =============================================================================
# 2. 시험 결과 (TestResult)
# =============================================================================
class TestResultCreate(BaseModel):
    parameter: str = Field(..., min_length=1, max_length=50)
    value: float
    unit: Optional[str] = Field(None, max_length=20)
    min_spec: Optional[float] = None
    max_spec: Optional[float] = None
    specimen_id: Optional[str] = Field(None, max_length=50)
    test_temperature: Optional[float] = None
    verdict: Optional[lims_models.Verdict] = Field(None, description="생략 시 규격 범위로 자동 판정")

    _strings = field_validator("parameter", "unit", "specimen_id", mode="before")(_strip)


class TestResultRead(BaseModel):
    id: int
    test_id: int
    parameter: str
    value: float
    unit: Optional[str] = None
    min_spec: Optional[float] = None
    max_spec: Optional[float] = None
    specimen_id: Optional[str] = None
    test_temperature: Optional[float] = None
    verdict: lims_models.Verdict
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# 3. 시험 (Test)
# =============================================================================
class TestCreate(BaseModel):
    category: lims_models.TestCategory
    method: str = Field(..., min_length=1, max_length=100)
    standard: Optional[str] = Field(None, max_length=100)

    _strings = field_validator("method", "standard", mode="before")(_strip)


class TestUpdate(BaseModel):
    status: Optional[lims_models.TestStatus] = None
    method: Optional[str] = Field(None, min_length=1, max_length=100)
    standard: Optional[str] = Field(None, max_length=100)


class TestRead(BaseModel):
    id: int
    sample_id: int
    category: lims_models.TestCategory
    method: str
    standard: Optional[str] = None
    status: lims_models.TestStatus
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TestReadWithResults(TestRead):
    results: List[TestResultRead] = []


# =============================================================================
# 4. 특채 (Deviation)
# =============================================================================
class DeviationCreate(BaseModel):
    parameter: str = Field(..., min_length=1, max_length=50)
    original_value: str = Field(..., min_length=1, max_length=100)
    deviated_value: str = Field(..., min_length=1, max_length=100)
    concession_ref: Optional[str] = Field(None, max_length=50)
    approved_by: Optional[str] = Field(None, max_length=100)


class DeviationRead(DeviationCreate):
    id: int
    sample_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# 5. 시료 상세
# =============================================================================
class SampleHeatDetail(BaseModel):
    id: int
    heat_no: str
    material_grade: str
    mtc_number: Optional[str] = None
    production_order: Optional[str] = None
    supplier_id: int
    supplier_code: Optional[str] = None
    supplier_name: Optional[str] = None


class SampleDetail(SampleRead):
    heat: Optional[SampleHeatDetail] = None
    tests: List[TestReadWithResults] = []
    deviations: List[DeviationRead] = []
