# app/domains/rpt/models.py

"""
'rpt' 도메인 (MTC 성적서)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime, UTC
from enum import Enum

from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

if TYPE_CHECKING:
    from app.domains.lims.models import Sample


class ReportStatus(str, Enum):
    DRAFT = "DRAFT"
    REVIEW = "REVIEW"
    RELEASED = "RELEASED"
    CANCELLED = "CANCELLED"


class Report(SQLModel, table=True):
    """
    rpt_reports 테이블 모델입니다. 시료 하나에 대한 MTC(Mill Test Certificate) 성적서를 나타냅니다.
    """
    __tablename__ = "rpt_reports"

    id: Optional[int] = Field(default=None, primary_key=True)
    report_no: str = Field(max_length=30, sa_column_kwargs={"unique": True}, index=True, description="MTC-YYYY-NNNNNN")
    sample_id: int = Field(foreign_key="lims_samples.id", index=True)
    status: ReportStatus = Field(default=ReportStatus.DRAFT, index=True)
    version: int = Field(default=1, description="수정할 때마다 1씩 증가")
    checksum: Optional[str] = Field(default=None, max_length=64)
    file_url: Optional[str] = Field(default=None, max_length=255)
    remarks: Optional[str] = Field(default=None, max_length=500)
    released_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    released_by_id: Optional[int] = Field(default=None, foreign_key="usr_users.id")
    created_by_id: Optional[int] = Field(default=None, foreign_key="usr_users.id")
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )

    sample: Optional["Sample"] = Relationship()
