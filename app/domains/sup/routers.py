# app/domains/sup/routers.py

"""
'sup' 도메인 (공급업체 관리)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import Optional, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User

from . import crud as sup_crud
from . import schemas as sup_schemas


router = APIRouter(
    tags=["Supplier Management (공급업체 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 공급업체 (Supplier) API
# =============================================================================
@router.post(
    "/suppliers",
    response_model=sup_schemas.SupplierRead,
    status_code=status.HTTP_201_CREATED,
    summary="새 공급업체 생성",
)
async def create_supplier(
    supplier_in: sup_schemas.SupplierCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    새로운 공급업체를 생성합니다.
    - **code**: 공급업체 코드 (필수, 고유, 대문자로 저장)
    - **name**: 공급업체명 (필수)
    """
    return await sup_crud.supplier.create(db, obj_in=supplier_in)


@router.get("/suppliers", response_model=sup_schemas.SupplierPage, summary="공급업체 목록 조회")
async def read_suppliers(
    code: Optional[str] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["code", "name", "email", "phone", "created_at", "updated_at"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    params = sup_schemas.SupplierQuery(
        code=code, name=name, email=email, phone=phone, is_active=is_active,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
    )
    return await sup_crud.supplier.get_page(db, params=params)


@router.get("/suppliers/{supplier_id}", response_model=sup_schemas.SupplierReadWithHeats, summary="공급업체 상세 조회")
async def read_supplier(
    supplier_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await sup_crud.supplier.get_with_heats(db, id=supplier_id)


@router.patch("/suppliers/{supplier_id}", response_model=sup_schemas.SupplierRead, summary="공급업체 정보 수정")
async def update_supplier(
    supplier_id: int,
    supplier_in: sup_schemas.SupplierUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_supplier = await sup_crud.supplier.get(db, supplier_id)
    if not db_supplier:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    return await sup_crud.supplier.update(db, db_obj=db_supplier, obj_in=supplier_in)


@router.delete("/suppliers/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT, summary="공급업체 삭제")
async def delete_supplier(
    supplier_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    await sup_crud.supplier.remove(db, id=supplier_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
