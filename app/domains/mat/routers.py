# app/domains/mat/routers.py

"""
'mat' 도메인 (원자재 히트 관리)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List, Optional, Literal
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User

from . import crud as mat_crud
from . import models as mat_models
from . import schemas as mat_schemas


router = APIRouter(
    tags=["Material Management (원자재 히트 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 히트 (Heat) API
# =============================================================================
@router.post("/heats", response_model=mat_schemas.HeatRead, status_code=status.HTTP_201_CREATED, summary="새 히트 등록")
async def create_heat(
    heat_in: mat_schemas.HeatCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    공급업체로부터 입고된 히트를 등록합니다.
    - **heat_no**: 히트 번호 (고유, 대문자로 저장)
    - **received_on**: 입고일 (미래 날짜 불가)
    """
    return await mat_crud.heat.create(db, obj_in=heat_in)


@router.get("/heats", response_model=mat_schemas.HeatPage, summary="히트 목록 조회")
async def read_heats(
    heat_no: Optional[str] = None,
    material_grade: Optional[str] = None,
    po_number: Optional[str] = None,
    grn_number: Optional[str] = None,
    supplier_id: Optional[int] = None,
    unit: Optional[mat_models.HeatUnit] = None,
    received_from: Optional[date] = None,
    received_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: Literal["heat_no", "material_grade", "received_on", "quantity", "created_at", "supplier"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    params = mat_schemas.HeatQuery(
        heat_no=heat_no, material_grade=material_grade, po_number=po_number, grn_number=grn_number,
        supplier_id=supplier_id, unit=unit, received_from=received_from, received_to=received_to,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
    )
    return await mat_crud.heat.get_page(db, params=params)


@router.get("/heats/{heat_id}", response_model=mat_schemas.HeatDetail, summary="히트 상세 조회")
async def read_heat(
    heat_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await mat_crud.heat.get_detail(db, id=heat_id)


@router.patch("/heats/{heat_id}", response_model=mat_schemas.HeatRead, summary="히트 정보 수정")
async def update_heat(
    heat_id: int,
    heat_in: mat_schemas.HeatUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_heat = await mat_crud.heat.get(db, heat_id)
    if not db_heat:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Heat not found")
    return await mat_crud.heat.update(db, db_obj=db_heat, obj_in=heat_in)


@router.delete("/heats/{heat_id}", status_code=status.HTTP_204_NO_CONTENT, summary="히트 삭제")
async def delete_heat(
    heat_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    await mat_crud.heat.remove(db, id=heat_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# 2. 히트 등록용 공급업체 선택 목록
# =============================================================================
@router.get("/suppliers", response_model=List[mat_schemas.SupplierBrief], summary="활성 공급업체 목록")
async def read_active_suppliers(
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await mat_crud.heat.active_suppliers(db)
