# app/domains/crm/models.py

"""
'crm' 도메인 (고객, 구매 주문)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.
"""

from typing import Optional, List
from datetime import datetime, UTC

from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


# =============================================================================
# 1. crm_customers 테이블 모델
# =============================================================================
class CustomerBase(SQLModel):
    code: str = Field(max_length=20, sa_column_kwargs={"unique": True}, index=True, description="고객 코드 (대문자)")
    name: str = Field(max_length=100, description="고객명")
    address: Optional[str] = Field(default=None, max_length=500)
    logo_url: Optional[str] = Field(default=None, max_length=255, description="성적서 헤더 로고 URL")
    is_active: bool = Field(default=True)


class Customer(CustomerBase, table=True):
    __tablename__ = "crm_customers"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )

    purchase_orders: List["PurchaseOrder"] = Relationship(back_populates="customer")


# =============================================================================
# 2. crm_purchase_orders 테이블 모델
# =============================================================================
class PurchaseOrderBase(SQLModel):
    customer_id: int = Field(foreign_key="crm_customers.id", index=True)
    po_number: str = Field(max_length=50, description="고객 PO 번호")
    line_number: Optional[str] = Field(default=None, max_length=20, description="PO 라인")
    part_number: Optional[str] = Field(default=None, max_length=50, description="품번")
    drawing_rev: Optional[str] = Field(default=None, max_length=20, description="도면 리비전")
    description: Optional[str] = Field(default=None, max_length=255)


class PurchaseOrder(PurchaseOrderBase, table=True):
    __tablename__ = "crm_purchase_orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )

    customer: Optional[Customer] = Relationship(back_populates="purchase_orders")
