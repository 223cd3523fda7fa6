# app/domains/rpt/schemas.py

"""
'rpt' 도메인 (MTC 성적서)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, List, Dict, Any, Literal
from datetime import date, datetime

from pydantic import BaseModel, Field

from app.domains.sup.schemas import PageMeta
from app.domains.lims.schemas import SampleDetail
from . import models as rpt_models


class ReportCreate(BaseModel):
    sample_id: int
    remarks: Optional[str] = Field(None, max_length=500)


class ReportUpdate(BaseModel):
    status: Optional[rpt_models.ReportStatus] = None
    remarks: Optional[str] = Field(None, max_length=500)


class ReportRead(BaseModel):
    id: int
    report_no: str
    sample_id: int
    status: rpt_models.ReportStatus
    version: int
    checksum: Optional[str] = None
    file_url: Optional[str] = None
    remarks: Optional[str] = None
    released_at: Optional[datetime] = None
    released_by_id: Optional[int] = None
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReportSampleBrief(BaseModel):
    id: int
    code: str
    heat_no: Optional[str] = None
    supplier_name: Optional[str] = None
    supplier_code: Optional[str] = None


class ReportListItem(ReportRead):
    sample: Optional[ReportSampleBrief] = None


class ReportPage(BaseModel):
    data: List[ReportListItem]
    meta: PageMeta


class ReportQuery(BaseModel):
    report_no: Optional[str] = None
    sample_id: Optional[int] = None
    status: Optional[rpt_models.ReportStatus] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    sort_by: Literal["report_no", "created_at", "released_at", "status"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


class ReportDetail(ReportRead):
    sample: SampleDetail


class ReportGenerated(ReportDetail):
    """generate 응답: 성적서 + PDF 생성에 사용되는 MTC 데이터"""
    mtc_data: Dict[str, Any]
