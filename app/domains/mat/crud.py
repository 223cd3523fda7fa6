# app/domains/mat/crud.py

"""
'mat' 도메인의 CRUD 작업을 담당하는 모듈입니다.
"""

import logging
from typing import Optional, List, Dict, Any

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, page_meta
from app.domains.sup.models import Supplier
from . import models as mat_models
from . import schemas as mat_schemas

logger = logging.getLogger(__name__)

LATEST_SAMPLES_LIMIT = 10


class CRUDHeat(CRUDBase[mat_models.Heat, mat_schemas.HeatCreate, mat_schemas.HeatUpdate]):
    def __init__(self):
        super().__init__(model=mat_models.Heat)

    async def get_by_heat_no(self, db: AsyncSession, *, heat_no: str) -> Optional[mat_models.Heat]:
        return await self.get_by_attribute(db, attribute="heat_no", value=heat_no)

    async def sample_counts(self, db: AsyncSession, heat_ids: List[int]) -> Dict[int, int]:
        from app.domains.lims.models import Sample

        if not heat_ids:
            return {}
        result = await db.execute(
            select(Sample.heat_id, func.count(Sample.id))
            .where(Sample.heat_id.in_(heat_ids))
            .group_by(Sample.heat_id)
        )
        return {heat_id: count for heat_id, count in result.all()}

    async def create(self, db: AsyncSession, *, obj_in: mat_schemas.HeatCreate) -> mat_models.Heat:
        """
        활성 공급업체 여부와 히트 번호 중복을 확인한 뒤 히트를 생성합니다.
        """
        supplier = await db.get(Supplier, obj_in.supplier_id)
        if not supplier or not supplier.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or inactive supplier")
        if await self.get_by_heat_no(db, heat_no=obj_in.heat_no):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Heat number {obj_in.heat_no} already exists",
            )
        db_obj = await super().create(db, obj_in=obj_in)
        logger.info("Heat %s received from supplier %s", db_obj.heat_no, supplier.code)
        return db_obj

    async def get_page(self, db: AsyncSession, *, params: mat_schemas.HeatQuery) -> Dict[str, Any]:
        Heat = mat_models.Heat
        query = select(Heat).options(selectinload(Heat.supplier))
        for field in ("heat_no", "material_grade", "po_number", "grn_number"):
            value = getattr(params, field)
            if value:
                query = query.where(func.lower(getattr(Heat, field)).contains(value.lower()))
        if params.supplier_id is not None:
            query = query.where(Heat.supplier_id == params.supplier_id)
        if params.unit is not None:
            query = query.where(Heat.unit == params.unit)
        if params.received_from is not None:
            query = query.where(Heat.received_on >= params.received_from)
        if params.received_to is not None:
            query = query.where(Heat.received_on <= params.received_to)

        if params.sort_by == "supplier":
            # 공급업체명 정렬
            query = query.join(Supplier, Supplier.id == Heat.supplier_id)
            order = Supplier.name.asc() if params.sort_order == "asc" else Supplier.name.desc()
        else:
            allowed = {name: getattr(Heat, name) for name in
                       ("heat_no", "material_grade", "received_on", "quantity", "created_at")}
            order = self.order_clause(params.sort_by, params.sort_order, allowed)
        query = query.order_by(order, Heat.id)

        items, total = await self.paginate(db, query=query, page=params.page, limit=params.limit)
        counts = await self.sample_counts(db, [item.id for item in items])
        data = [
            mat_schemas.HeatListItem(
                **mat_schemas.HeatRead.model_validate(item).model_dump(),
                supplier=mat_schemas.SupplierBrief.model_validate(item.supplier) if item.supplier else None,
                sample_count=counts.get(item.id, 0),
            )
            for item in items
        ]
        return {"data": data, "meta": page_meta(total, params.page, params.limit)}

    async def get_detail(self, db: AsyncSession, *, id: int) -> mat_schemas.HeatDetail:
        """공급업체와 최근 시료 10건을 포함한 히트 상세 정보를 반환합니다."""
        from app.domains.lims.models import Sample

        result = await db.execute(
            select(mat_models.Heat)
            .where(mat_models.Heat.id == id)
            .options(selectinload(mat_models.Heat.supplier))
        )
        heat = result.scalars().first()
        if not heat:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Heat not found")

        samples = (await db.execute(
            select(Sample)
            .where(Sample.heat_id == id)
            .order_by(Sample.created_at.desc(), Sample.id.desc())
            .limit(LATEST_SAMPLES_LIMIT)
        )).scalars().all()
        counts = await self.sample_counts(db, [id])

        return mat_schemas.HeatDetail(
            **mat_schemas.HeatRead.model_validate(heat).model_dump(),
            supplier=mat_schemas.SupplierBrief.model_validate(heat.supplier) if heat.supplier else None,
            sample_count=counts.get(id, 0),
            samples=[mat_schemas.HeatSampleSummary.model_validate(s) for s in samples],
        )

    async def remove(self, db: AsyncSession, *, id: int) -> mat_models.Heat:
        heat = await self.get(db, id)
        if not heat:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Heat not found")
        counts = await self.sample_counts(db, [id])
        if counts.get(id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete heat with existing samples",
            )
        logger.info("Heat %s deleted", heat.heat_no)
        return await super().delete(db, id=id)

    async def active_suppliers(self, db: AsyncSession) -> List[Supplier]:
        result = await db.execute(
            select(Supplier).where(Supplier.is_active == True).order_by(Supplier.name)  # noqa: E712
        )
        return result.scalars().all()


heat = CRUDHeat()
