# app/domains/lims/routers.py

"""
'lims' 도메인 (시료, 시험, 결과, 특채)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List, Optional, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User

from . import crud as lims_crud
from . import models as lims_models
from . import schemas as lims_schemas


router = APIRouter(
    tags=["LIMS (시료/시험 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 시료 (Sample) API
# =============================================================================
@router.post("/samples", response_model=lims_schemas.SampleRead, status_code=status.HTTP_201_CREATED, summary="새 시료 생성")
async def create_sample(
    sample_in: lims_schemas.SampleCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    새로운 시료를 생성합니다. 시료 코드(S-YYYY-NNNNNN)는 자동 채번됩니다.
    - **source_type**: HEAT 인 경우 **heat_id** 필수
    """
    return await lims_crud.sample.create(db, obj_in=sample_in, created_by_id=current_user.id)


@router.get("/samples", response_model=lims_schemas.SamplePage, summary="시료 목록 조회")
async def read_samples(
    code: Optional[str] = None,
    requested_by: Optional[str] = None,
    source_type: Optional[lims_models.SourceType] = None,
    heat_id: Optional[int] = None,
    priority: Optional[lims_models.Priority] = None,
    state: Optional[lims_models.SampleState] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["created_at", "code", "priority", "state", "requested_by"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    params = lims_schemas.SampleQuery(
        code=code, requested_by=requested_by, source_type=source_type, heat_id=heat_id,
        priority=priority, state=state, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
    )
    return await lims_crud.sample.get_page(db, params=params)


@router.get("/samples/{sample_id}", response_model=lims_schemas.SampleDetail, summary="시료 상세 조회")
async def read_sample(
    sample_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await lims_crud.sample.get_detail(db, id=sample_id)


@router.patch("/samples/{sample_id}", response_model=lims_schemas.SampleRead, summary="시료 정보 수정")
async def update_sample(
    sample_id: int,
    sample_in: lims_schemas.SampleUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """상태 변경은 정의된 전이 규칙을 따릅니다."""
    db_sample = await lims_crud.sample.get(db, sample_id)
    if not db_sample:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sample not found")
    return await lims_crud.sample.update(db, db_obj=db_sample, obj_in=sample_in)


@router.delete("/samples/{sample_id}", status_code=status.HTTP_204_NO_CONTENT, summary="시료 삭제")
async def delete_sample(
    sample_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    await lims_crud.sample.remove(db, id=sample_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/samples/{sample_id}/register", response_model=lims_schemas.SampleRead, summary="시료 접수")
async def register_sample(
    sample_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await lims_crud.sample.register(db, id=sample_id)


# =============================================================================
# 2. 시험 (Test) API
# =============================================================================
@router.post(
    "/samples/{sample_id}/tests",
    response_model=lims_schemas.TestRead,
    status_code=status.HTTP_201_CREATED,
    summary="시료에 시험 추가",
)
async def create_test(
    sample_id: int,
    test_in: lims_schemas.TestCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await lims_crud.test.create_for_sample(db, sample_id=sample_id, obj_in=test_in)


@router.get("/tests/{test_id}", response_model=lims_schemas.TestReadWithResults, summary="시험 상세 조회")
async def read_test(
    test_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await lims_crud.test.get_with_results(db, id=test_id)


@router.patch("/tests/{test_id}", response_model=lims_schemas.TestRead, summary="시험 정보 수정")
async def update_test(
    test_id: int,
    test_in: lims_schemas.TestUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_test = await lims_crud.test.get(db, test_id)
    if not db_test:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test not found")
    return await lims_crud.test.update(db, db_obj=db_test, obj_in=test_in)


@router.delete("/tests/{test_id}", status_code=status.HTTP_204_NO_CONTENT, summary="시험 삭제")
async def delete_test(
    test_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    await lims_crud.test.remove(db, id=test_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# 3. 시험 결과 (TestResult) API
# =============================================================================
@router.post(
    "/tests/{test_id}/results",
    response_model=lims_schemas.TestResultRead,
    status_code=status.HTTP_201_CREATED,
    summary="시험 결과 입력",
)
async def create_test_result(
    test_id: int,
    result_in: lims_schemas.TestResultCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    시험 결과를 입력합니다.
    - **verdict** 생략 시 min_spec/max_spec 범위로 PASS/FAIL 을 자동 판정합니다.
    """
    return await lims_crud.test_result.create_for_test(db, test_id=test_id, obj_in=result_in)


# =============================================================================
# 4. 특채 (Deviation) API
# =============================================================================
@router.post(
    "/samples/{sample_id}/deviations",
    response_model=lims_schemas.DeviationRead,
    status_code=status.HTTP_201_CREATED,
    summary="특채 등록",
)
async def create_deviation(
    sample_id: int,
    deviation_in: lims_schemas.DeviationCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_qc_user),
):
    return await lims_crud.deviation.create_for_sample(db, sample_id=sample_id, obj_in=deviation_in)


@router.get("/samples/{sample_id}/deviations", response_model=List[lims_schemas.DeviationRead], summary="특채 목록 조회")
async def read_deviations(
    sample_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await lims_crud.deviation.get_for_sample(db, sample_id=sample_id)
