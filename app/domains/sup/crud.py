# app/domains/sup/crud.py

"""
'sup' 도메인의 CRUD 작업을 담당하는 모듈입니다.

공급업체 목록은 부분 일치 필터, 정렬, 페이지네이션을 지원하며
각 행에 히트 건수(heat_count)를 함께 반환합니다.
"""

import logging
from typing import Optional, List, Dict, Any

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, page_meta
from . import models as sup_models
from . import schemas as sup_schemas

logger = logging.getLogger(__name__)


class CRUDSupplier(CRUDBase[sup_models.Supplier, sup_schemas.SupplierCreate, sup_schemas.SupplierUpdate]):
    def __init__(self):
        super().__init__(model=sup_models.Supplier)

    async def get_by_code(self, db: AsyncSession, *, code: str) -> Optional[sup_models.Supplier]:
        return await self.get_by_attribute(db, attribute="code", value=code)

    async def heat_counts(self, db: AsyncSession, supplier_ids: List[int]) -> Dict[int, int]:
        """공급업체 ID별 히트 건수를 조회합니다."""
        from app.domains.mat.models import Heat

        if not supplier_ids:
            return {}
        query = (
            select(Heat.supplier_id, func.count(Heat.id))
            .where(Heat.supplier_id.in_(supplier_ids))
            .group_by(Heat.supplier_id)
        )
        result = await db.execute(query)
        return {supplier_id: count for supplier_id, count in result.all()}

    async def create(self, db: AsyncSession, *, obj_in: sup_schemas.SupplierCreate) -> sup_models.Supplier:
        if await self.get_by_code(db, code=obj_in.code):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Supplier code already exists")
        db_obj = await super().create(db, obj_in=obj_in)
        logger.info("Supplier %s created", db_obj.code)
        return db_obj

    async def get_page(self, db: AsyncSession, *, params: sup_schemas.SupplierQuery) -> Dict[str, Any]:
        """
        필터/정렬/페이지네이션이 적용된 공급업체 목록을 반환합니다.
        문자열 필터는 대소문자를 구분하지 않는 부분 일치입니다.
        """
        query = select(sup_models.Supplier)
        for field in ("code", "name", "email", "phone"):
            value = getattr(params, field)
            if value:
                column = getattr(sup_models.Supplier, field)
                query = query.where(func.lower(column).contains(value.lower()))
        if params.is_active is not None:
            query = query.where(sup_models.Supplier.is_active == params.is_active)

        allowed = {name: getattr(sup_models.Supplier, name) for name in
                   ("code", "name", "email", "phone", "created_at", "updated_at")}
        query = query.order_by(self.order_clause(params.sort_by, params.sort_order, allowed), sup_models.Supplier.id)

        items, total = await self.paginate(db, query=query, page=params.page, limit=params.limit)
        counts = await self.heat_counts(db, [item.id for item in items])

        data = [
            sup_schemas.SupplierListItem(
                **sup_schemas.SupplierRead.model_validate(item).model_dump(),
                heat_count=counts.get(item.id, 0),
            )
            for item in items
        ]
        return {"data": data, "meta": page_meta(total, params.page, params.limit)}

    async def get_with_heats(self, db: AsyncSession, *, id: int) -> sup_schemas.SupplierReadWithHeats:
        from app.domains.mat.models import Heat

        supplier = await self.get(db, id)
        if not supplier:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")

        result = await db.execute(
            select(Heat).where(Heat.supplier_id == id).order_by(Heat.received_on.desc(), Heat.id.desc())
        )
        heats = result.scalars().all()
        return sup_schemas.SupplierReadWithHeats(
            **sup_schemas.SupplierRead.model_validate(supplier).model_dump(),
            heat_count=len(heats),
            heats=[sup_schemas.SupplierHeatSummary.model_validate(h) for h in heats],
        )

    async def update(
        self, db: AsyncSession, *, db_obj: sup_models.Supplier, obj_in: sup_schemas.SupplierUpdate
    ) -> sup_models.Supplier:
        if obj_in.code and obj_in.code != db_obj.code:
            if await self.get_by_code(db, code=obj_in.code):
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Supplier code already exists")
        return await super().update(db, db_obj=db_obj, obj_in=obj_in)

    async def remove(self, db: AsyncSession, *, id: int) -> sup_models.Supplier:
        """히트 기록이 없는 공급업체만 삭제합니다."""
        from app.domains.mat.models import Heat

        supplier = await self.get(db, id)
        if not supplier:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")

        heat_total = (await db.execute(
            select(func.count(Heat.id)).where(Heat.supplier_id == id)
        )).scalar_one()
        if heat_total:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete supplier with existing heat records",
            )
        logger.info("Supplier %s deleted", supplier.code)
        return await super().delete(db, id=id)


supplier = CRUDSupplier()
