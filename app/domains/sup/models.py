# app/domains/sup/models.py

"""
'sup' 도메인 (공급업체)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.
"""

from typing import Optional, List, TYPE_CHECKING
from datetime import datetime, UTC

from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

if TYPE_CHECKING:
    from app.domains.mat.models import Heat


class SupplierBase(SQLModel):
    """
    sup_suppliers 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    """
    code: str = Field(max_length=20, sa_column_kwargs={"unique": True}, index=True, description="공급업체 코드 (대문자)")
    name: str = Field(max_length=100, description="공급업체명")
    contact_person: Optional[str] = Field(default=None, max_length=100, description="담당자")
    email: Optional[str] = Field(default=None, max_length=100, description="이메일 (소문자)")
    phone: Optional[str] = Field(default=None, max_length=20, description="전화번호")
    address: Optional[str] = Field(default=None, max_length=500, description="주소")
    is_active: bool = Field(default=True, description="활성 여부")


class Supplier(SupplierBase, table=True):
    """
    sup_suppliers 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "sup_suppliers"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )

    heats: List["Heat"] = Relationship(back_populates="supplier")
