# app/domains/lims/crud.py

"""
'lims' 도메인의 CRUD 작업을 담당하는 모듈입니다.

- 시료 코드(S-YYYY-NNNNNN) 채번과 상태 전이 규칙을 적용합니다.
- 시험 결과는 판정이 생략되면 규격 범위로 자동 판정합니다.
"""

import logging
from typing import Optional, List, Dict, Any
from datetime import datetime, UTC

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, page_meta
from . import models as lims_models
from . import schemas as lims_schemas

logger = logging.getLogger(__name__)

SampleState = lims_models.SampleState

SAMPLE_TRANSITIONS: Dict[SampleState, List[SampleState]] = {
    SampleState.PENDING: [SampleState.REGISTERED, SampleState.REJECTED],
    SampleState.REGISTERED: [SampleState.IN_PROGRESS, SampleState.REJECTED],
    SampleState.IN_PROGRESS: [SampleState.COMPLETED, SampleState.REJECTED],
    SampleState.COMPLETED: [SampleState.APPROVED, SampleState.IN_PROGRESS],
    SampleState.APPROVED: [SampleState.RELEASED, SampleState.COMPLETED],
    SampleState.RELEASED: [],
    SampleState.REJECTED: [SampleState.PENDING],
}


def compute_verdict(value: float, min_spec: Optional[float], max_spec: Optional[float]) -> lims_models.Verdict:
    """규격 범위를 벗어나면 FAIL, 그 외에는 PASS."""
    if min_spec is not None and value < min_spec:
        return lims_models.Verdict.FAIL
    if max_spec is not None and value > max_spec:
        return lims_models.Verdict.FAIL
    return lims_models.Verdict.PASS


# =============================================================================
# 1. 시료 (Sample) CRUD
# =============================================================================
class CRUDSample(CRUDBase[lims_models.Sample, lims_schemas.SampleCreate, lims_schemas.SampleUpdate]):
    def __init__(self):
        super().__init__(model=lims_models.Sample)

    async def get_by_code(self, db: AsyncSession, *, code: str) -> Optional[lims_models.Sample]:
        return await self.get_by_attribute(db, attribute="code", value=code)

    async def next_code(self, db: AsyncSession, *, year: Optional[int] = None) -> str:
        """해당 연도의 마지막 시료 코드에 1을 더한 코드를 반환합니다."""
        year = year or datetime.now(UTC).year
        prefix = f"S-{year}-"
        result = await db.execute(
            select(lims_models.Sample.code)
            .where(lims_models.Sample.code.like(f"{prefix}%"))
            .order_by(lims_models.Sample.code.desc())
            .limit(1)
        )
        last_code = result.scalars().first()
        seq = int(last_code.rsplit("-", 1)[1]) + 1 if last_code else 1
        return f"{prefix}{seq:06d}"

    async def create(
        self, db: AsyncSession, *, obj_in: lims_schemas.SampleCreate, created_by_id: Optional[int] = None
    ) -> lims_models.Sample:
        from app.domains.mat.crud import heat as heat_crud

        if obj_in.source_type == lims_models.SourceType.HEAT:
            if not obj_in.heat_id or not await heat_crud.get(db, obj_in.heat_id):
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid heat ID provided")
        elif obj_in.heat_id and not await heat_crud.get(db, obj_in.heat_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid heat ID provided")

        code = await self.next_code(db)
        db_obj = await super().create(db, obj_in=obj_in, code=code, created_by_id=created_by_id)
        logger.info("Sample %s created", db_obj.code, extra={"sample_id": db_obj.id, "user_id": created_by_id})
        return db_obj

    async def get_page(self, db: AsyncSession, *, params: lims_schemas.SampleQuery) -> Dict[str, Any]:
        from app.domains.mat.models import Heat

        Sample = lims_models.Sample
        query = select(Sample).options(selectinload(Sample.heat).selectinload(Heat.supplier))
        for field in ("code", "requested_by"):
            value = getattr(params, field)
            if value:
                query = query.where(func.lower(getattr(Sample, field)).contains(value.lower()))
        for field in ("source_type", "heat_id", "priority", "state"):
            value = getattr(params, field)
            if value is not None:
                query = query.where(getattr(Sample, field) == value)

        allowed = {name: getattr(Sample, name) for name in ("created_at", "code", "priority", "state", "requested_by")}
        query = query.order_by(self.order_clause(params.sort_by, params.sort_order, allowed), Sample.id)

        items, total = await self.paginate(db, query=query, page=params.page, limit=params.limit)
        counts = await self.test_counts(db, [item.id for item in items])
        data = []
        for item in items:
            heat_brief = None
            if item.heat:
                heat_brief = lims_schemas.SampleHeatBrief(
                    id=item.heat.id,
                    heat_no=item.heat.heat_no,
                    material_grade=item.heat.material_grade,
                    supplier_name=item.heat.supplier.name if item.heat.supplier else None,
                )
            data.append(lims_schemas.SampleListItem(
                **lims_schemas.SampleRead.model_validate(item).model_dump(),
                heat=heat_brief,
                test_count=counts.get(item.id, 0),
            ))
        return {"data": data, "meta": page_meta(total, params.page, params.limit)}

    async def test_counts(self, db: AsyncSession, sample_ids: List[int]) -> Dict[int, int]:
        if not sample_ids:
            return {}
        result = await db.execute(
            select(lims_models.Test.sample_id, func.count(lims_models.Test.id))
            .where(lims_models.Test.sample_id.in_(sample_ids))
            .group_by(lims_models.Test.sample_id)
        )
        return {sample_id: count for sample_id, count in result.all()}

    async def get_with_relations(self, db: AsyncSession, *, id: int) -> Optional[lims_models.Sample]:
        """
        히트(공급업체 포함), 시험과 결과, 특채 기록을 함께 로드합니다.
        성적서 생성에서도 이 메서드로 시료를 조회합니다.
        """
        from app.domains.mat.models import Heat

        Sample = lims_models.Sample
        result = await db.execute(
            select(Sample)
            .where(Sample.id == id)
            .options(
                selectinload(Sample.heat).selectinload(Heat.supplier),
                selectinload(Sample.tests).selectinload(lims_models.Test.results),
                selectinload(Sample.deviations),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_detail(self, db: AsyncSession, *, id: int) -> lims_schemas.SampleDetail:
        sample = await self.get_with_relations(db, id=id)
        if not sample:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sample not found")

        heat_detail = None
        if sample.heat:
            heat_detail = lims_schemas.SampleHeatDetail(
                id=sample.heat.id,
                heat_no=sample.heat.heat_no,
                material_grade=sample.heat.material_grade,
                mtc_number=sample.heat.mtc_number,
                production_order=sample.heat.production_order,
                supplier_id=sample.heat.supplier_id,
                supplier_code=sample.heat.supplier.code if sample.heat.supplier else None,
                supplier_name=sample.heat.supplier.name if sample.heat.supplier else None,
            )
        return lims_schemas.SampleDetail(
            **lims_schemas.SampleRead.model_validate(sample).model_dump(),
            heat=heat_detail,
            tests=[lims_schemas.TestReadWithResults.model_validate(t) for t in sample.tests],
            deviations=[lims_schemas.DeviationRead.model_validate(d) for d in sample.deviations],
        )

    def _apply_state(self, db_obj: lims_models.Sample, new_state: SampleState) -> None:
        if new_state not in SAMPLE_TRANSITIONS[db_obj.state]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid sample state transition from {db_obj.state.value} to {new_state.value}",
            )
        now = datetime.now(UTC)
        if new_state == SampleState.REGISTERED:
            db_obj.registered_at = now
        elif new_state == SampleState.COMPLETED:
            db_obj.completed_at = now
        logger.info("Sample %s: %s -> %s", db_obj.code, db_obj.state.value, new_state.value,
                    extra={"sample_id": db_obj.id})
        db_obj.state = new_state

    async def update(
        self, db: AsyncSession, *, db_obj: lims_models.Sample, obj_in: lims_schemas.SampleUpdate
    ) -> lims_models.Sample:
        update_data = obj_in.model_dump(exclude_unset=True)
        new_state = update_data.pop("state", None)
        if new_state is not None and new_state != db_obj.state:
            self._apply_state(db_obj, SampleState(new_state))
        return await super().update(db, db_obj=db_obj, obj_in=update_data)

    async def register(self, db: AsyncSession, *, id: int) -> lims_models.Sample:
        db_obj = await self.get(db, id)
        if not db_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sample not found")
        if db_obj.state != SampleState.PENDING:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only pending samples can be registered")
        self._apply_state(db_obj, SampleState.REGISTERED)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def remove(self, db: AsyncSession, *, id: int) -> lims_models.Sample:
        db_obj = await self.get(db, id)
        if not db_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sample not found")
        counts = await self.test_counts(db, [id])
        if counts.get(id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete sample with existing tests")
        return await super().delete(db, id=id)


sample = CRUDSample()


# =============================================================================
# 2. 시험 (Test) CRUD
# =============================================================================
class CRUDTest(CRUDBase[lims_models.Test, lims_schemas.TestCreate, lims_schemas.TestUpdate]):
    def __init__(self):
        super().__init__(model=lims_models.Test)

    async def get_with_results(self, db: AsyncSession, *, id: int) -> lims_models.Test:
        result = await db.execute(
            select(lims_models.Test)
            .where(lims_models.Test.id == id)
            .options(selectinload(lims_models.Test.results))
            .execution_options(populate_existing=True)
        )
        db_obj = result.scalars().first()
        if not db_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test not found")
        return db_obj

    async def create_for_sample(
        self, db: AsyncSession, *, sample_id: int, obj_in: lims_schemas.TestCreate
    ) -> lims_models.Test:
        if not await sample.get(db, sample_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sample not found")
        return await super().create(db, obj_in=obj_in, sample_id=sample_id)

    async def update(
        self, db: AsyncSession, *, db_obj: lims_models.Test, obj_in: lims_schemas.TestUpdate
    ) -> lims_models.Test:
        update_data = obj_in.model_dump(exclude_unset=True)
        if update_data.get("status") == lims_models.TestStatus.COMPLETED and db_obj.status != lims_models.TestStatus.COMPLETED:
            update_data["completed_at"] = datetime.now(UTC)
        return await super().update(db, db_obj=db_obj, obj_in=update_data)

    async def remove(self, db: AsyncSession, *, id: int) -> lims_models.Test:
        db_obj = await self.get_with_results(db, id=id)
        await db.delete(db_obj)
        await db.commit()
        return db_obj


test = CRUDTest()


# =============================================================================
# 3. 시험 결과 (TestResult) CRUD
# =============================================================================
class CRUDTestResult(CRUDBase[lims_models.TestResult, lims_schemas.TestResultCreate, lims_schemas.TestResultCreate]):
    def __init__(self):
        super().__init__(model=lims_models.TestResult)

    async def create_for_test(
        self, db: AsyncSession, *, test_id: int, obj_in: lims_schemas.TestResultCreate
    ) -> lims_models.TestResult:
        if not await test.get(db, test_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test not found")
        verdict = obj_in.verdict or compute_verdict(obj_in.value, obj_in.min_spec, obj_in.max_spec)
        data = obj_in.model_dump(exclude={"verdict"})
        return await super().create(db, obj_in=data, test_id=test_id, verdict=verdict)


test_result = CRUDTestResult()


# =============================================================================
# 4. 특채 (Deviation) CRUD
# =============================================================================
class CRUDDeviation(CRUDBase[lims_models.Deviation, lims_schemas.DeviationCreate, lims_schemas.DeviationCreate]):
    def __init__(self):
        super().__init__(model=lims_models.Deviation)

    async def create_for_sample(
        self, db: AsyncSession, *, sample_id: int, obj_in: lims_schemas.DeviationCreate
    ) -> lims_models.Deviation:
        if not await sample.get(db, sample_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sample not found")
        return await super().create(db, obj_in=obj_in, sample_id=sample_id)

    async def get_for_sample(self, db: AsyncSession, *, sample_id: int) -> List[lims_models.Deviation]:
        if not await sample.get(db, sample_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sample not found")
        result = await db.execute(
            select(lims_models.Deviation)
            .where(lims_models.Deviation.sample_id == sample_id)
            .order_by(lims_models.Deviation.id)
        )
        return result.scalars().all()


deviation = CRUDDeviation()
