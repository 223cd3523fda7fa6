# app/domains/rpa/models.py

"""
'rpa' 도메인 (성적서 자동 발행)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- rpa_report_templates: Jinja2 성적서 템플릿 (헤더/본문/푸터, 표/페이지 설정)
- rpa_generated_reports: 발행된 성적서 (번호, 버전, 파일, 체크섬, QR)
- rpa_report_verifications: 검증 코드별 체크섬 기록 (공개 검증용)
- rpa_report_signatures: 성적서 서명
- rpa_report_activities: 감사 로그
- rpa_report_distributions: 배포 요청 기록
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, UTC
from enum import Enum

from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import JSON, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

# PostgreSQL 에서는 JSONB, 그 외(SQLite 테스트 DB)에서는 JSON
JSONType = JSON().with_variant(JSONB, "postgresql")


class ReportType(str, Enum):
    COA = "COA"
    MTC = "MTC"
    HT_REPORT = "HT_REPORT"
    DISPATCH = "DISPATCH"
    PPAP = "PPAP"
    CHARPY = "CHARPY"
    UT_MAP = "UT_MAP"


class ReportFormat(str, Enum):
    PDF = "PDF"
    DOCX = "DOCX"
    XLSX = "XLSX"


class GeneratedReportStatus(str, Enum):
    DRAFT = "DRAFT"
    PREVIEW = "PREVIEW"
    RELEASED = "RELEASED"
    ARCHIVED = "ARCHIVED"
    FAILED = "FAILED"


class SignatureType(str, Enum):
    PKI = "PKI"
    SIMPLE = "SIMPLE"
    TIMESTAMP = "TIMESTAMP"


class DistributionChannel(str, Enum):
    EMAIL = "EMAIL"
    SAP = "SAP"
    WEBHOOK = "WEBHOOK"
    PORTAL = "PORTAL"
    PRINT = "PRINT"


class ReportAction(str, Enum):
    CREATED = "CREATED"
    GENERATED = "GENERATED"
    RELEASED = "RELEASED"
    SIGNED = "SIGNED"
    DISTRIBUTED = "DISTRIBUTED"
    DOWNLOADED = "DOWNLOADED"
    FAILED = "FAILED"


def _created_at():
    return Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )


# =============================================================================
# 1. rpa_report_templates 테이블 모델
# =============================================================================
class ReportTemplateBase(SQLModel):
    name: str = Field(max_length=100, description="템플릿 이름")
    report_type: ReportType = Field(description="성적서 유형")
    customer_id: Optional[int] = Field(default=None, foreign_key="crm_customers.id", description="고객 전용 템플릿")
    header_template: Optional[str] = Field(default=None, sa_column=Column(Text))
    body_template: str = Field(sa_column=Column(Text, nullable=False))
    footer_template: Optional[str] = Field(default=None, sa_column=Column(Text))
    table_config: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSONType))
    page_config: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSONType))
    is_default: bool = Field(default=False)
    is_active: bool = Field(default=True)


class ReportTemplate(ReportTemplateBase, table=True):
    __tablename__ = "rpa_report_templates"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = _created_at()
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )


# =============================================================================
# 2. rpa_generated_reports 테이블 모델
# =============================================================================
class GeneratedReport(SQLModel, table=True):
    __tablename__ = "rpa_generated_reports"
    __table_args__ = (UniqueConstraint("report_no", "version", name="uq_rpa_report_no_version"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    report_no: str = Field(max_length=30, index=True, description="성적서 번호 {PLANT}-{YY}-{SEQ}")
    report_type: ReportType
    version: str = Field(default="1.0", max_length=10, description="major.minor")
    revision: int = Field(default=0)
    is_reissue: bool = Field(default=False)
    reissue_reason: Optional[str] = Field(default=None, max_length=500)

    template_id: Optional[int] = Field(default=None, foreign_key="rpa_report_templates.id")
    customer_id: int = Field(foreign_key="crm_customers.id", index=True)
    po_id: Optional[int] = Field(default=None, foreign_key="crm_purchase_orders.id")
    sample_id: Optional[int] = Field(default=None, foreign_key="lims_samples.id", index=True)
    batch_no: Optional[str] = Field(default=None, max_length=50)

    status: GeneratedReportStatus = Field(default=GeneratedReportStatus.DRAFT, index=True)
    format: ReportFormat = Field(default=ReportFormat.PDF)
    merge_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSONType))
    qr_code: Optional[str] = Field(default=None, sa_column=Column(Text), description="PNG data URL")
    qr_url: Optional[str] = Field(default=None, max_length=255)
    verify_code: Optional[str] = Field(default=None, max_length=16, index=True)

    file_url: Optional[str] = Field(default=None, max_length=255)
    file_size: Optional[int] = None
    checksum: Optional[str] = Field(default=None, max_length=64)

    generated_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    released_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    # 'metadata' 는 SQLAlchemy 예약어이므로 속성명은 report_metadata 로 둡니다.
    report_metadata: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column("metadata", JSONType))
    created_by_id: Optional[int] = Field(default=None, foreign_key="usr_users.id")
    created_at: Optional[datetime] = _created_at()
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )

    signatures: List["ReportSignature"] = Relationship(
        back_populates="report",
        sa_relationship_kwargs={"order_by": "ReportSignature.id"},
    )


# =============================================================================
# 3. rpa_report_verifications 테이블 모델
# =============================================================================
class ReportVerification(SQLModel, table=True):
    __tablename__ = "rpa_report_verifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    report_no: str = Field(max_length=30, index=True)
    version: str = Field(max_length=10)
    checksum: str = Field(max_length=64)
    verify_code: str = Field(max_length=16, sa_column_kwargs={"unique": True}, index=True)
    created_at: Optional[datetime] = _created_at()


# =============================================================================
# 4. rpa_report_signatures 테이블 모델
# =============================================================================
class ReportSignature(SQLModel, table=True):
    __tablename__ = "rpa_report_signatures"

    id: Optional[int] = Field(default=None, primary_key=True)
    report_id: int = Field(foreign_key="rpa_generated_reports.id", index=True)
    user_id: int = Field(foreign_key="usr_users.id")
    role: str = Field(max_length=50, description="서명 역할 (예: QA Manager)")
    signature_type: SignatureType = Field(default=SignatureType.SIMPLE)
    signature_data: Optional[str] = Field(default=None, sa_column=Column(Text))
    certificate: Optional[str] = Field(default=None, sa_column=Column(Text))
    signed_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )

    report: Optional[GeneratedReport] = Relationship(back_populates="signatures")


# =============================================================================
# 5. rpa_report_activities 테이블 모델 (감사 로그)
# =============================================================================
class ReportActivity(SQLModel, table=True):
    __tablename__ = "rpa_report_activities"

    id: Optional[int] = Field(default=None, primary_key=True)
    report_id: int = Field(foreign_key="rpa_generated_reports.id", index=True)
    user_id: Optional[int] = Field(default=None, foreign_key="usr_users.id")
    action: ReportAction
    details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSONType))
    created_at: Optional[datetime] = _created_at()


# =============================================================================
# 6. rpa_report_distributions 테이블 모델
# =============================================================================
class ReportDistribution(SQLModel, table=True):
    __tablename__ = "rpa_report_distributions"

    id: Optional[int] = Field(default=None, primary_key=True)
    report_id: int = Field(foreign_key="rpa_generated_reports.id", index=True)
    channel: DistributionChannel
    recipients: Optional[List[str]] = Field(default=None, sa_column=Column(JSONType))
    status: str = Field(default="QUEUED", max_length=20)
    distribution_metadata: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column("metadata", JSONType))
    created_at: Optional[datetime] = _created_at()
