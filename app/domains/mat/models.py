# app/domains/mat/models.py

"""
'mat' 도메인 (원자재 히트)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.
"""

from typing import Optional, List, TYPE_CHECKING
from datetime import date, datetime, UTC
from enum import Enum

from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

if TYPE_CHECKING:
    from app.domains.sup.models import Supplier
    from app.domains.lims.models import Sample


class HeatUnit(str, Enum):
    KG = "KG"
    MT = "MT"
    LBS = "LBS"
    PCS = "PCS"


# =============================================================================
# mat_heats 테이블 모델
# =============================================================================
class HeatBase(SQLModel):
    heat_no: str = Field(max_length=50, sa_column_kwargs={"unique": True}, index=True, description="히트 번호 (대문자)")
    supplier_id: int = Field(foreign_key="sup_suppliers.id", index=True, description="공급업체 ID")
    material_grade: str = Field(max_length=100, description="재질 등급")
    received_on: date = Field(description="입고일")
    quantity: float = Field(sa_column=Column(Numeric(12, 3, asdecimal=False), nullable=False), description="수량")
    unit: HeatUnit = Field(default=HeatUnit.KG, description="단위")
    po_number: Optional[str] = Field(default=None, max_length=50, description="구매 주문 번호")
    grn_number: Optional[str] = Field(default=None, max_length=50, description="입고 번호 (GRN)")
    mtc_number: Optional[str] = Field(default=None, max_length=50, description="공급사 MTC 번호")
    production_order: Optional[str] = Field(default=None, max_length=50, description="생산 오더")


class Heat(HeatBase, table=True):
    """
    mat_heats 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "mat_heats"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )

    supplier: Optional["Supplier"] = Relationship(back_populates="heats")
    samples: List["Sample"] = Relationship(back_populates="heat")
