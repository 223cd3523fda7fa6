# app/domains/rpt/crud.py

"""
'rpt' 도메인 (MTC 성적서)의 CRUD 작업을 담당하는 모듈입니다.

성적서 상태 전이:
    DRAFT -> REVIEW, CANCELLED
    REVIEW -> RELEASED, DRAFT, CANCELLED
    RELEASED -> (없음)
    CANCELLED -> DRAFT
"""

import hashlib
import json
import logging
from datetime import datetime, UTC
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, page_meta, day_start, day_end
from . import models as rpt_models
from . import schemas as rpt_schemas

logger = logging.getLogger(__name__)

ReportStatus = rpt_models.ReportStatus

REPORT_TRANSITIONS = {
    ReportStatus.DRAFT: {ReportStatus.REVIEW, ReportStatus.CANCELLED},
    ReportStatus.REVIEW: {ReportStatus.RELEASED, ReportStatus.DRAFT, ReportStatus.CANCELLED},
    ReportStatus.RELEASED: set(),
    ReportStatus.CANCELLED: {ReportStatus.DRAFT},
}

# 체크섬에서 제외하는 시각 값 (DB 왕복 시 표현이 달라질 수 있음)
_CHECKSUM_EXCLUDE = {
    "created_at": True,
    "updated_at": True,
    "completed_at": True,
    "results": {"__all__": {"created_at"}},
}


def report_checksum(report_no: str, sample_id: int, tests) -> str:
    from app.domains.lims.schemas import TestReadWithResults

    payload = {
        "report_no": report_no,
        "sample_id": sample_id,
        "tests": [
            TestReadWithResults.model_validate(t).model_dump(mode="json", exclude=_CHECKSUM_EXCLUDE)
            for t in tests
        ],
    }
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()


def _result_rows(tests, category: str):
    return [
        {"parameter": r.parameter, "value": r.value, "unit": r.unit, "min_spec": r.min_spec,
         "max_spec": r.max_spec, "verdict": r.verdict.value, "method": t.method, "standard": t.standard}
        for t in tests if t.category.value == category
        for r in t.results
    ]


def build_mtc_data(report: rpt_models.Report, sample) -> Dict[str, Any]:
    """MTC PDF 생성에 사용하는 성적서 데이터를 만듭니다."""
    heat = sample.heat
    supplier = heat.supplier if heat else None
    return {
        "certificate_no": report.report_no,
        "issue_date": report.created_at.isoformat() if report.created_at else None,
        "supplier": {"name": supplier.name, "code": supplier.code} if supplier else None,
        "material": {
            "heat_no": heat.heat_no,
            "grade": heat.material_grade,
            "quantity": heat.quantity,
            "unit": heat.unit.value,
        } if heat else None,
        "chemical_composition": _result_rows(sample.tests, "CHEMICAL"),
        "mechanical_properties": _result_rows(sample.tests, "MECHANICAL"),
        "sample_details": {
            "code": sample.code,
            "registered_at": sample.registered_at.isoformat() if sample.registered_at else None,
            "completed_at": sample.completed_at.isoformat() if sample.completed_at else None,
        },
    }


class CRUDReport(CRUDBase[rpt_models.Report, rpt_schemas.ReportCreate, rpt_schemas.ReportUpdate]):
    def __init__(self):
        super().__init__(model=rpt_models.Report)

    async def get_or_404(self, db: AsyncSession, id: int) -> rpt_models.Report:
        db_obj = await self.get(db, id)
        if not db_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
        return db_obj

    async def _load_sample(self, db: AsyncSession, sample_id: int):
        from app.domains.lims import crud as lims_crud

        sample = await lims_crud.sample.get_with_relations(db, id=sample_id)
        if not sample:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sample not found")
        return sample

    async def next_report_no(self, db: AsyncSession) -> str:
        """MTC-{연도}-{연도별 순번 6자리}"""
        prefix = f"MTC-{datetime.now(UTC).year}-"
        result = await db.execute(
            select(rpt_models.Report.report_no)
            .where(rpt_models.Report.report_no.like(f"{prefix}%"))
            .order_by(rpt_models.Report.report_no.desc())
            .limit(1)
        )
        last = result.scalars().first()
        seq = int(last.rsplit("-", 1)[-1]) + 1 if last else 1
        return f"{prefix}{seq:06d}"

    async def create(
        self, db: AsyncSession, *, obj_in: rpt_schemas.ReportCreate, created_by_id: Optional[int] = None
    ) -> rpt_models.Report:
        from app.domains.lims.models import TestStatus

        sample = await self._load_sample(db, obj_in.sample_id)
        if not any(t.status == TestStatus.COMPLETED for t in sample.tests):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="Sample must have at least one completed test")
        report_no = await self.next_report_no(db)
        return await super().create(db, obj_in=obj_in, report_no=report_no, created_by_id=created_by_id)

    async def get_page(self, db: AsyncSession, *, params: rpt_schemas.ReportQuery) -> Dict[str, Any]:
        from app.domains.lims.models import Sample
        from app.domains.mat.models import Heat

        Report = rpt_models.Report
        query = select(Report).options(
            selectinload(Report.sample).selectinload(Sample.heat).selectinload(Heat.supplier)
        )
        if params.report_no:
            query = query.where(func.lower(Report.report_no).contains(params.report_no.lower()))
        if params.sample_id is not None:
            query = query.where(Report.sample_id == params.sample_id)
        if params.status is not None:
            query = query.where(Report.status == params.status)
        if params.from_date is not None:
            query = query.where(Report.created_at >= day_start(params.from_date))
        if params.to_date is not None:
            query = query.where(Report.created_at < day_end(params.to_date))

        allowed = {name: getattr(Report, name) for name in ("report_no", "created_at", "released_at", "status")}
        query = query.order_by(self.order_clause(params.sort_by, params.sort_order, allowed), Report.id)

        items, total = await self.paginate(db, query=query, page=params.page, limit=params.limit)
        data = []
        for item in items:
            sample_brief = None
            if item.sample:
                heat = item.sample.heat
                sample_brief = rpt_schemas.ReportSampleBrief(
                    id=item.sample.id,
                    code=item.sample.code,
                    heat_no=heat.heat_no if heat else None,
                    supplier_name=heat.supplier.name if heat and heat.supplier else None,
                    supplier_code=heat.supplier.code if heat and heat.supplier else None,
                )
            data.append(rpt_schemas.ReportListItem(
                **rpt_schemas.ReportRead.model_validate(item).model_dump(), sample=sample_brief,
            ))
        return {"data": data, "meta": page_meta(total, params.page, params.limit)}

    async def get_detail(self, db: AsyncSession, *, id: int) -> rpt_schemas.ReportDetail:
        from app.domains.lims import crud as lims_crud

        report = await self.get_or_404(db, id)
        sample = await lims_crud.sample.get_detail(db, id=report.sample_id)
        return rpt_schemas.ReportDetail(**rpt_schemas.ReportRead.model_validate(report).model_dump(), sample=sample)

    async def update(
        self, db: AsyncSession, *, db_obj: rpt_models.Report, obj_in: rpt_schemas.ReportUpdate
    ) -> rpt_models.Report:
        if db_obj.status == ReportStatus.RELEASED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot update a released report")
        update_data = obj_in.model_dump(exclude_unset=True)
        new_status = update_data.get("status")
        if new_status is not None and new_status != db_obj.status:
            if new_status not in REPORT_TRANSITIONS[db_obj.status]:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Invalid status transition from {db_obj.status.value} to {new_status.value}",
                )
            logger.info("Report %s: %s -> %s", db_obj.report_no, db_obj.status.value, new_status.value)
        update_data["version"] = db_obj.version + 1
        return await super().update(db, db_obj=db_obj, obj_in=update_data)

    async def remove(self, db: AsyncSession, *, id: int) -> rpt_models.Report:
        db_obj = await self.get_or_404(db, id)
        if db_obj.status == ReportStatus.RELEASED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete a released report")
        await db.delete(db_obj)
        await db.commit()
        return db_obj

    async def generate_mtc(self, db: AsyncSession, *, id: int) -> rpt_schemas.ReportGenerated:
        """체크섬을 계산하고 DRAFT 성적서를 REVIEW 로 넘깁니다."""
        report = await self.get_or_404(db, id)
        sample = await self._load_sample(db, report.sample_id)

        report.checksum = report_checksum(report.report_no, report.sample_id, sample.tests)
        if report.status == ReportStatus.DRAFT:
            report.status = ReportStatus.REVIEW
        db.add(report)
        await db.commit()
        await db.refresh(report)

        detail = await self.get_detail(db, id=report.id)
        return rpt_schemas.ReportGenerated(**detail.model_dump(), mtc_data=build_mtc_data(report, sample))

    async def release(self, db: AsyncSession, *, id: int, released_by_id: int) -> rpt_models.Report:
        from app.domains.lims.models import SampleState, TestStatus

        report = await self.get_or_404(db, id)
        if report.status == ReportStatus.RELEASED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Report is already released")
        if report.status == ReportStatus.DRAFT:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Report must be reviewed before release")

        sample = await self._load_sample(db, report.sample_id)
        if not all(t.status == TestStatus.COMPLETED for t in sample.tests):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="All tests must be completed before release")

        now = datetime.now(UTC)
        report.status = ReportStatus.RELEASED
        report.released_at = now
        report.released_by_id = released_by_id
        sample.state = SampleState.COMPLETED
        sample.completed_at = now
        db.add(report)
        db.add(sample)
        await db.commit()
        await db.refresh(report)
        logger.info("Report %s released by user %s", report.report_no, released_by_id)
        return report

    async def render_pdf(self, db: AsyncSession, *, id: int) -> tuple:
        """(파일명, PDF 바이트)를 반환합니다."""
        from app.domains.rpa.generators import generate_mtc_pdf

        report = await self.get_or_404(db, id)
        sample = await self._load_sample(db, report.sample_id)
        content = generate_mtc_pdf(report.report_no, build_mtc_data(report, sample))
        return f"MTC-{report.report_no}.pdf", content


report = CRUDReport()
