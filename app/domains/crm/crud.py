# app/domains/crm/crud.py

"""
'crm' 도메인의 CRUD 작업을 담당하는 모듈입니다.
"""

from typing import Optional, List

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from . import models as crm_models
from . import schemas as crm_schemas


# =============================================================================
# 1. 고객 (Customer) CRUD
# =============================================================================
class CRUDCustomer(CRUDBase[crm_models.Customer, crm_schemas.CustomerCreate, crm_schemas.CustomerUpdate]):
    def __init__(self):
        super().__init__(model=crm_models.Customer)

    async def get_by_code(self, db: AsyncSession, *, code: str) -> Optional[crm_models.Customer]:
        return await self.get_by_attribute(db, attribute="code", value=code)

    async def get_or_404(self, db: AsyncSession, id: int) -> crm_models.Customer:
        db_obj = await self.get(db, id)
        if not db_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
        return db_obj

    async def create(self, db: AsyncSession, *, obj_in: crm_schemas.CustomerCreate) -> crm_models.Customer:
        if await self.get_by_code(db, code=obj_in.code):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Customer code already exists")
        return await super().create(db, obj_in=obj_in)

    async def update(
        self, db: AsyncSession, *, db_obj: crm_models.Customer, obj_in: crm_schemas.CustomerUpdate
    ) -> crm_models.Customer:
        if obj_in.code and obj_in.code != db_obj.code and await self.get_by_code(db, code=obj_in.code):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Customer code already exists")
        return await super().update(db, db_obj=db_obj, obj_in=obj_in)

    async def remove(self, db: AsyncSession, *, id: int) -> crm_models.Customer:
        """구매 주문이 없는 고객만 삭제합니다."""
        await self.get_or_404(db, id)
        po_total = (await db.execute(
            select(func.count(crm_models.PurchaseOrder.id)).where(crm_models.PurchaseOrder.customer_id == id)
        )).scalar_one()
        if po_total:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete customer with existing purchase orders",
            )
        return await super().delete(db, id=id)


customer = CRUDCustomer()


# =============================================================================
# 2. 구매 주문 (PurchaseOrder) CRUD
# =============================================================================
class CRUDPurchaseOrder(CRUDBase[crm_models.PurchaseOrder, crm_schemas.PurchaseOrderCreate, crm_schemas.PurchaseOrderCreate]):
    def __init__(self):
        super().__init__(model=crm_models.PurchaseOrder)

    async def create(self, db: AsyncSession, *, obj_in: crm_schemas.PurchaseOrderCreate) -> crm_models.PurchaseOrder:
        await customer.get_or_404(db, obj_in.customer_id)
        return await super().create(db, obj_in=obj_in)

    async def get_by_customer(self, db: AsyncSession, *, customer_id: int) -> List[crm_models.PurchaseOrder]:
        result = await db.execute(
            select(crm_models.PurchaseOrder)
            .where(crm_models.PurchaseOrder.customer_id == customer_id)
            .order_by(crm_models.PurchaseOrder.id)
        )
        return result.scalars().all()


purchase_order = CRUDPurchaseOrder()
