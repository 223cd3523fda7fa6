# app/domains/rpa/crud.py

"""
'rpa' 도메인의 CRUD 작업을 담당하는 모듈입니다.

성적서 생성 흐름(번호 채번, 병합 데이터, 파일 생성)은 services.py 에 있으며
이 모듈은 테이블 단위의 조회/저장만 담당합니다.
"""

from typing import Optional, List, Dict, Any, Tuple
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, day_start, day_end
from . import models as rpa_models
from . import schemas as rpa_schemas


# =============================================================================
# 1. 템플릿 (ReportTemplate) CRUD
# =============================================================================
class CRUDReportTemplate(CRUDBase[rpa_models.ReportTemplate, rpa_schemas.TemplateCreate, rpa_schemas.TemplateCreate]):
    def __init__(self):
        super().__init__(model=rpa_models.ReportTemplate)

    async def get_or_404(self, db: AsyncSession, id: int) -> rpa_models.ReportTemplate:
        db_obj = await self.get(db, id)
        if not db_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
        return db_obj

    async def get_active(self, db: AsyncSession) -> List[rpa_models.ReportTemplate]:
        result = await db.execute(
            select(rpa_models.ReportTemplate)
            .where(rpa_models.ReportTemplate.is_active == True)  # noqa: E712
            .order_by(rpa_models.ReportTemplate.report_type, rpa_models.ReportTemplate.name)
        )
        return result.scalars().all()

    async def find_for(
        self, db: AsyncSession, *, report_type: rpa_models.ReportType, customer_id: Optional[int]
    ) -> Optional[rpa_models.ReportTemplate]:
        """고객 전용 활성 템플릿, 없으면 유형별 기본 활성 템플릿을 찾습니다."""
        Template = rpa_models.ReportTemplate
        if customer_id is not None:
            result = await db.execute(
                select(Template)
                .where(Template.report_type == report_type, Template.customer_id == customer_id,
                       Template.is_active == True)  # noqa: E712
                .order_by(Template.is_default.desc(), Template.id.desc())
            )
            found = result.scalars().first()
            if found:
                return found
        result = await db.execute(
            select(Template)
            .where(Template.report_type == report_type, Template.is_default == True,  # noqa: E712
                   Template.is_active == True)  # noqa: E712
            .order_by(Template.id.desc())
        )
        return result.scalars().first()


report_template = CRUDReportTemplate()


# =============================================================================
# 2. 발행 성적서 (GeneratedReport) CRUD
# =============================================================================
class CRUDGeneratedReport(CRUDBase[rpa_models.GeneratedReport, rpa_schemas.GenerateReportRequest, rpa_schemas.GenerateReportRequest]):
    def __init__(self):
        super().__init__(model=rpa_models.GeneratedReport)

    async def get_or_404(self, db: AsyncSession, id: int) -> rpa_models.GeneratedReport:
        db_obj = await self.get(db, id)
        if not db_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
        return db_obj

    async def get_versions(self, db: AsyncSession, *, report_no: str) -> List[rpa_models.GeneratedReport]:
        result = await db.execute(
            select(rpa_models.GeneratedReport).where(rpa_models.GeneratedReport.report_no == report_no)
        )
        return result.scalars().all()

    async def last_report_no(self, db: AsyncSession, *, prefix: str) -> Optional[str]:
        result = await db.execute(
            select(rpa_models.GeneratedReport.report_no)
            .where(rpa_models.GeneratedReport.report_no.like(f"{prefix}%"))
            .order_by(rpa_models.GeneratedReport.report_no.desc())
            .limit(1)
        )
        return result.scalars().first()

    def _filtered(self, query, *, report_no=None, customer_id=None, status=None, from_date=None, to_date=None):
        Report = rpa_models.GeneratedReport
        if report_no:
            query = query.where(func.lower(Report.report_no).contains(report_no.lower()))
        if customer_id is not None:
            query = query.where(Report.customer_id == customer_id)
        if status is not None:
            query = query.where(Report.status == status)
        if from_date is not None:
            query = query.where(Report.created_at >= day_start(from_date))
        if to_date is not None:
            query = query.where(Report.created_at < day_end(to_date))
        return query

    async def search(
        self,
        db: AsyncSession,
        *,
        report_no: Optional[str] = None,
        customer_id: Optional[int] = None,
        status: Optional[rpa_models.GeneratedReportStatus] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[rpa_models.GeneratedReport], int]:
        Report = rpa_models.GeneratedReport
        filters = dict(report_no=report_no, customer_id=customer_id, status=status,
                       from_date=from_date, to_date=to_date)
        total = (await db.execute(self._filtered(select(func.count(Report.id)), **filters))).scalar_one()
        result = await db.execute(
            self._filtered(select(Report), **filters)
            .order_by(Report.created_at.desc(), Report.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return result.scalars().all(), total

    async def statistics(
        self, db: AsyncSession, *, from_date: Optional[date] = None, to_date: Optional[date] = None
    ) -> Dict[str, Any]:
        Report = rpa_models.GeneratedReport
        filters = dict(from_date=from_date, to_date=to_date)
        total = (await db.execute(self._filtered(select(func.count(Report.id)), **filters))).scalar_one()
        by_type = await db.execute(
            self._filtered(select(Report.report_type, func.count(Report.id)), **filters).group_by(Report.report_type)
        )
        by_status = await db.execute(
            self._filtered(select(Report.status, func.count(Report.id)), **filters).group_by(Report.status)
        )
        return {
            "total_reports": total,
            "by_type": {getattr(k, "value", k): v for k, v in by_type.all()},
            "by_status": {getattr(k, "value", k): v for k, v in by_status.all()},
        }


generated_report = CRUDGeneratedReport()


# =============================================================================
# 3. 검증 (ReportVerification) CRUD
# =============================================================================
class CRUDReportVerification(CRUDBase[rpa_models.ReportVerification, rpa_schemas.VerificationResponse, rpa_schemas.VerificationResponse]):
    def __init__(self):
        super().__init__(model=rpa_models.ReportVerification)

    async def get_by_code(self, db: AsyncSession, *, code: str) -> Optional[rpa_models.ReportVerification]:
        return await self.get_by_attribute(db, attribute="verify_code", value=code)


report_verification = CRUDReportVerification()


# =============================================================================
# 4. 감사 로그 (ReportActivity) CRUD
# =============================================================================
class CRUDReportActivity(CRUDBase[rpa_models.ReportActivity, rpa_schemas.ActivityRead, rpa_schemas.ActivityRead]):
    def __init__(self):
        super().__init__(model=rpa_models.ReportActivity)

    def log(
        self,
        db: AsyncSession,
        *,
        report_id: int,
        action: rpa_models.ReportAction,
        user_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> rpa_models.ReportActivity:
        """감사 로그를 세션에 추가합니다. 커밋은 호출 측에서 합니다."""
        entry = rpa_models.ReportActivity(report_id=report_id, action=action, user_id=user_id, details=details or {})
        db.add(entry)
        return entry

    async def get_for_report(
        self, db: AsyncSession, *, report_id: int, limit: int = 50, offset: int = 0
    ) -> Tuple[List[rpa_models.ReportActivity], int]:
        Activity = rpa_models.ReportActivity
        total = (await db.execute(
            select(func.count(Activity.id)).where(Activity.report_id == report_id)
        )).scalar_one()
        result = await db.execute(
            select(Activity)
            .where(Activity.report_id == report_id)
            .order_by(Activity.created_at.desc(), Activity.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return result.scalars().all(), total


report_activity = CRUDReportActivity()


# =============================================================================
# 5. 서명 (ReportSignature) CRUD
# =============================================================================
class CRUDReportSignature(CRUDBase[rpa_models.ReportSignature, rpa_schemas.SignatureCreate, rpa_schemas.SignatureCreate]):
    def __init__(self):
        super().__init__(model=rpa_models.ReportSignature)

    async def get_for_report(self, db: AsyncSession, *, report_id: int) -> List[rpa_models.ReportSignature]:
        result = await db.execute(
            select(rpa_models.ReportSignature)
            .where(rpa_models.ReportSignature.report_id == report_id)
            .order_by(rpa_models.ReportSignature.id)
        )
        return result.scalars().all()


report_signature = CRUDReportSignature()
