# app/domains/rpt/routers.py

"""
'rpt' 도메인 (MTC 성적서)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User

from . import crud as rpt_crud
from . import models as rpt_models
from . import schemas as rpt_schemas


router = APIRouter(
    tags=["MTC Report Management (MTC 성적서 관리)"],
    responses={404: {"description": "Not found"}},
)


@router.post("/reports", response_model=rpt_schemas.ReportRead, status_code=status.HTTP_201_CREATED, summary="MTC 성적서 생성")
async def create_report(
    report_in: rpt_schemas.ReportCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await rpt_crud.report.create(db, obj_in=report_in, created_by_id=current_user.id)


@router.get("/reports", response_model=rpt_schemas.ReportPage, summary="MTC 성적서 목록 조회")
async def read_reports(
    report_no: Optional[str] = None,
    sample_id: Optional[int] = None,
    status_filter: Optional[rpt_models.ReportStatus] = Query(None, alias="status"),
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["report_no", "created_at", "released_at", "status"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    params = rpt_schemas.ReportQuery(
        report_no=report_no, sample_id=sample_id, status=status_filter, from_date=from_date, to_date=to_date,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
    )
    return await rpt_crud.report.get_page(db, params=params)


@router.get("/reports/{report_id}", response_model=rpt_schemas.ReportDetail, summary="MTC 성적서 상세 조회")
async def read_report(
    report_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await rpt_crud.report.get_detail(db, id=report_id)


@router.patch("/reports/{report_id}", response_model=rpt_schemas.ReportRead, summary="MTC 성적서 수정 (상태/비고)")
async def update_report(
    report_id: int,
    report_in: rpt_schemas.ReportUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_qc_user),
):
    db_report = await rpt_crud.report.get_or_404(db, report_id)
    return await rpt_crud.report.update(db, db_obj=db_report, obj_in=report_in)


@router.delete("/reports/{report_id}", status_code=status.HTTP_204_NO_CONTENT, summary="MTC 성적서 삭제")
async def delete_report(
    report_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    await rpt_crud.report.remove(db, id=report_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/reports/{report_id}/generate", response_model=rpt_schemas.ReportGenerated, summary="MTC 데이터 생성 (DRAFT -> REVIEW)")
async def generate_report(
    report_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_qc_user),
):
    return await rpt_crud.report.generate_mtc(db, id=report_id)


@router.post("/reports/{report_id}/release", response_model=rpt_schemas.ReportRead, summary="MTC 성적서 발행")
async def release_report(
    report_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_qc_user),
):
    return await rpt_crud.report.release(db, id=report_id, released_by_id=current_user.id)


@router.get("/reports/{report_id}/download", summary="MTC 성적서 PDF 다운로드")
async def download_report(
    report_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    filename, content = await rpt_crud.report.render_pdf(db, id=report_id)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
