# app/domains/rpa/routers.py

"""
'rpa' 도메인 (성적서 자동 발행)과 관련된 API 엔드포인트를 정의하는 모듈입니다.

- router: 인증이 필요한 자동 발행 API
- verify_router: 인증 없이 QR 검증 코드로 성적서를 확인하는 공개 API
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User

from . import crud as rpa_crud
from . import models as rpa_models
from . import schemas as rpa_schemas
from . import services as rpa_services


router = APIRouter(
    tags=["Report Automation (성적서 자동 발행)"],
    responses={404: {"description": "Not found"}},
)

verify_router = APIRouter(tags=["Report Verification (성적서 검증)"])


@verify_router.get("/verify/{code}", response_model=rpa_schemas.VerificationResponse, summary="검증 코드로 성적서 확인 (공개)")
async def verify_report_public(code: str, db: AsyncSession = Depends(deps.get_db_session)):
    return await rpa_services.verify_report(db, code=code)


# =============================================================================
# 1. 템플릿 API
# =============================================================================
@router.get("/templates", response_model=rpa_schemas.TemplateList, summary="활성 템플릿 목록")
async def read_templates(
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return {"templates": await rpa_crud.report_template.get_active(db)}


@router.get("/templates/{template_id}", response_model=rpa_schemas.TemplateRead, summary="템플릿 상세 조회")
async def read_template(
    template_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await rpa_crud.report_template.get_or_404(db, template_id)


@router.post("/templates", response_model=rpa_schemas.TemplateRead, status_code=status.HTTP_201_CREATED, summary="템플릿 생성")
async def create_template(
    template_in: rpa_schemas.TemplateCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    return await rpa_services.create_template(db, obj_in=template_in)


# =============================================================================
# 2. 생성 API
# =============================================================================
@router.post("/generate", response_model=rpa_schemas.GenerateReportResponse, status_code=status.HTTP_202_ACCEPTED, summary="성적서 생성 요청")
async def generate_report(
    request_in: rpa_schemas.GenerateReportRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    queue=Depends(deps.get_task_queue),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await rpa_services.generate_report(db, queue=queue, request=request_in, user_id=current_user.id)


@router.post("/bulk-generate", response_model=rpa_schemas.BulkGenerateResponse, summary="여러 시료의 성적서 일괄 생성")
async def bulk_generate_reports(
    request_in: rpa_schemas.BulkGenerateRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    queue=Depends(deps.get_task_queue),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await rpa_services.bulk_generate(db, queue=queue, request=request_in, user_id=current_user.id)


@router.post("/reissue/{report_no}", response_model=rpa_schemas.GenerateReportResponse, status_code=status.HTTP_202_ACCEPTED, summary="성적서 재발행 (새 버전)")
async def reissue_report(
    report_no: str,
    request_in: rpa_schemas.ReissueRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    queue=Depends(deps.get_task_queue),
    current_user: User = Depends(deps.get_current_qc_user),
):
    return await rpa_services.reissue_report(
        db, queue=queue, report_no=report_no, request=request_in, user_id=current_user.id,
    )


@router.post("/preview", response_model=rpa_schemas.PreviewResponse, summary="미리보기 성적서 생성")
async def preview_report(
    request_in: rpa_schemas.GenerateReportRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    queue=Depends(deps.get_task_queue),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await rpa_services.preview_report(db, queue=queue, request=request_in, user_id=current_user.id)


# =============================================================================
# 3. 조회 / 검색 API
# =============================================================================
@router.get("/search", response_model=rpa_schemas.SearchResponse, summary="성적서 검색")
async def search_reports(
    report_no: Optional[str] = None,
    customer_id: Optional[int] = None,
    status_filter: Optional[rpa_models.GeneratedReportStatus] = Query(None, alias="status"),
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    reports, total = await rpa_crud.generated_report.search(
        db, report_no=report_no, customer_id=customer_id, status=status_filter,
        from_date=from_date, to_date=to_date, limit=limit, offset=offset,
    )
    return {"reports": reports, "total": total}


@router.get("/statistics", response_model=rpa_schemas.StatisticsResponse, summary="성적서 통계")
async def read_statistics(
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await rpa_crud.generated_report.statistics(db, from_date=from_date, to_date=to_date)


@router.get("/reports/verify/{code}", response_model=rpa_schemas.VerificationResponse, summary="검증 코드로 성적서 확인")
async def verify_report(
    code: str,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await rpa_services.verify_report(db, code=code)


@router.get("/{report_id}/status", response_model=rpa_schemas.ReportStatusResponse, summary="성적서 생성 상태")
async def read_report_status(
    report_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await rpa_services.get_status(db, report_id=report_id)


@router.get("/{report_id}/activity", response_model=rpa_schemas.ActivityList, summary="성적서 감사 로그")
async def read_report_activity(
    report_id: int,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    await rpa_crud.generated_report.get_or_404(db, report_id)
    activities, total = await rpa_crud.report_activity.get_for_report(
        db, report_id=report_id, limit=limit, offset=offset,
    )
    return {"activities": activities, "total": total}


@router.get("/{report_id}/preview", summary="미리보기 파일 (inline)")
async def read_report_preview(
    report_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    content, media_type, report = await rpa_services.get_preview_file(db, report_id=report_id)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'inline; filename="{report.report_no}.{report.format.value.lower()}"'},
    )


@router.get("/{report_id}/download", summary="발행된 성적서 다운로드")
async def download_report(
    report_id: int,
    request: Request,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    content, filename, media_type, report = await rpa_services.download_report(
        db,
        report_id=report_id,
        user_id=current_user.id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(content)),
            "X-Report-Checksum": report.checksum,
        },
    )


# =============================================================================
# 4. 발행 / 서명 / 배포 API
# =============================================================================
@router.put("/{report_id}/release", response_model=rpa_schemas.ReleaseResponse, summary="성적서 발행")
async def release_report(
    report_id: int,
    request_in: rpa_schemas.ReleaseRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_qc_user),
):
    return await rpa_services.release_report(db, report_id=report_id, request=request_in, user_id=current_user.id)


@router.post("/{report_id}/sign", response_model=rpa_schemas.SignResponse, status_code=status.HTTP_201_CREATED, summary="성적서 서명")
async def sign_report(
    report_id: int,
    request_in: rpa_schemas.SignatureCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_qc_user),
):
    return await rpa_services.sign_report(db, report_id=report_id, request=request_in, user_id=current_user.id)


@router.post("/{report_id}/distribute", response_model=rpa_schemas.DistributeResponse, summary="성적서 배포")
async def distribute_report(
    report_id: int,
    request_in: rpa_schemas.DistributeRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_qc_user),
):
    return await rpa_services.distribute_report(db, report_id=report_id, request=request_in, user_id=current_user.id)
