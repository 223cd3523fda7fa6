# app/domains/rpa/schemas.py

"""
'rpa' 도메인 (성적서 자동 발행)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime

from pydantic import BaseModel, Field

from . import models as rpa_models


# =============================================================================
# 1. 생성 요청
# =============================================================================
class GenerateOptions(BaseModel):
    """시료를 제외한 성적서 생성 옵션 (일괄 생성에서 공통으로 사용)"""
    report_type: rpa_models.ReportType = rpa_models.ReportType.MTC
    format: rpa_models.ReportFormat = rpa_models.ReportFormat.PDF
    customer_id: int
    po_id: Optional[int] = None
    batch_no: Optional[str] = Field(None, max_length=50)
    template_id: Optional[int] = None
    auto_release: bool = False
    custom_fields: Dict[str, Any] = {}


class GenerateReportRequest(GenerateOptions):
    sample_id: Optional[int] = None


class GenerateReportResponse(BaseModel):
    report_id: int
    report_no: str
    version: str
    status: str = "GENERATING"
    message: str = "Report generation initiated"


class BulkGenerateRequest(BaseModel):
    sample_ids: List[int] = Field(..., min_length=1)
    options: GenerateOptions


class BulkGenerateItem(BaseModel):
    id: int
    status: str
    result: Optional[GenerateReportResponse] = None
    error: Optional[str] = None


class BulkGenerateResponse(BaseModel):
    total: int
    success: int
    failed: int
    results: List[BulkGenerateItem]


class ReissueOverrides(BaseModel):
    format: Optional[rpa_models.ReportFormat] = None
    template_id: Optional[int] = None
    customer_id: Optional[int] = None
    po_id: Optional[int] = None
    batch_no: Optional[str] = None
    auto_release: bool = False
    custom_fields: Dict[str, Any] = {}


class ReissueRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
    options: Optional[ReissueOverrides] = None


class PreviewResponse(BaseModel):
    report_id: int
    preview_url: str
    status: str = "PREVIEW"
    html: str


# =============================================================================
# 2. 발행 / 서명 / 배포
# =============================================================================
class SignatureCreate(BaseModel):
    role: str = Field(..., min_length=1, max_length=50)
    signature_type: rpa_models.SignatureType = rpa_models.SignatureType.SIMPLE
    signature_data: Optional[str] = None
    certificate: Optional[str] = None


class SignResponse(BaseModel):
    signature_id: int
    message: str = "Report signed successfully"


class ReleaseRequest(BaseModel):
    signatures: List[SignatureCreate] = []
    auto_distribute: bool = False
    distribution_channels: Optional[List[rpa_models.DistributionChannel]] = None
    recipients: List[str] = []


class ReleaseResponse(BaseModel):
    report_id: int
    status: str = "RELEASED"
    message: str = "Report released successfully"
    distribution_status: str


class DistributeRequest(BaseModel):
    channels: List[rpa_models.DistributionChannel] = Field(..., min_length=1)
    recipients: List[str] = []
    metadata: Optional[Dict[str, Any]] = None


class DistributeResponse(BaseModel):
    report_id: int
    status: str = "DISTRIBUTION_QUEUED"
    channels: List[rpa_models.DistributionChannel]


# =============================================================================
# 3. 조회
# =============================================================================
class ReportStatusResponse(BaseModel):
    report_id: int
    report_no: str
    version: str
    status: rpa_models.GeneratedReportStatus
    format: rpa_models.ReportFormat
    generated_at: Optional[datetime] = None
    released_at: Optional[datetime] = None
    file_size: Optional[int] = None
    checksum: Optional[str] = None


class ActivityRead(BaseModel):
    id: int
    report_id: int
    user_id: Optional[int] = None
    action: rpa_models.ReportAction
    details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActivityList(BaseModel):
    activities: List[ActivityRead]
    total: int


class GeneratedReportRead(BaseModel):
    id: int
    report_no: str
    report_type: rpa_models.ReportType
    version: str
    revision: int
    is_reissue: bool
    reissue_reason: Optional[str] = None
    template_id: Optional[int] = None
    customer_id: int
    po_id: Optional[int] = None
    sample_id: Optional[int] = None
    batch_no: Optional[str] = None
    status: rpa_models.GeneratedReportStatus
    format: rpa_models.ReportFormat
    qr_url: Optional[str] = None
    file_size: Optional[int] = None
    checksum: Optional[str] = None
    generated_at: Optional[datetime] = None
    released_at: Optional[datetime] = None
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SearchResponse(BaseModel):
    reports: List[GeneratedReportRead]
    total: int


class StatisticsResponse(BaseModel):
    total_reports: int
    by_type: Dict[str, int]
    by_status: Dict[str, int]


class VerificationResponse(BaseModel):
    valid: bool
    report_no: Optional[str] = None
    version: Optional[str] = None
    checksum: Optional[str] = None
    status: Optional[rpa_models.GeneratedReportStatus] = None
    released_at: Optional[datetime] = None


# =============================================================================
# 4. 템플릿
# =============================================================================
class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    report_type: rpa_models.ReportType
    customer_id: Optional[int] = None
    header_template: Optional[str] = None
    body_template: str = Field(..., min_length=1)
    footer_template: Optional[str] = None
    table_config: Optional[Dict[str, Any]] = None
    page_config: Optional[Dict[str, Any]] = None
    is_default: bool = False
    is_active: bool = True


class TemplateRead(TemplateCreate):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TemplateList(BaseModel):
    templates: List[TemplateRead]
