# app/domains/crm/routers.py

"""
'crm' 도메인 (고객 및 구매 주문)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User

from . import crud as crm_crud
from . import schemas as crm_schemas


router = APIRouter(
    tags=["Customer Management (고객 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 고객 (Customer) API
# =============================================================================
@router.post("/customers", response_model=crm_schemas.CustomerRead, status_code=status.HTTP_201_CREATED, summary="새 고객 생성")
async def create_customer(
    customer_in: crm_schemas.CustomerCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_qc_user),
):
    return await crm_crud.customer.create(db, obj_in=customer_in)


@router.get("/customers", response_model=List[crm_schemas.CustomerRead], summary="고객 목록 조회")
async def read_customers(
    is_active: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    filters = {} if is_active is None else {"is_active": is_active}
    return await crm_crud.customer.get_multi(db, skip=skip, limit=limit, **filters)


@router.get("/customers/{customer_id}", response_model=crm_schemas.CustomerRead, summary="고객 상세 조회")
async def read_customer(
    customer_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await crm_crud.customer.get_or_404(db, customer_id)


@router.patch("/customers/{customer_id}", response_model=crm_schemas.CustomerRead, summary="고객 정보 수정")
async def update_customer(
    customer_id: int,
    customer_in: crm_schemas.CustomerUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_qc_user),
):
    db_customer = await crm_crud.customer.get_or_404(db, customer_id)
    return await crm_crud.customer.update(db, db_obj=db_customer, obj_in=customer_in)


@router.delete("/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT, summary="고객 삭제")
async def delete_customer(
    customer_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    await crm_crud.customer.remove(db, id=customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# 2. 구매 주문 (PurchaseOrder) API
# =============================================================================
@router.post(
    "/purchase_orders",
    response_model=crm_schemas.PurchaseOrderRead,
    status_code=status.HTTP_201_CREATED,
    summary="새 구매 주문 등록",
)
async def create_purchase_order(
    po_in: crm_schemas.PurchaseOrderCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_qc_user),
):
    return await crm_crud.purchase_order.create(db, obj_in=po_in)


@router.get("/purchase_orders", response_model=List[crm_schemas.PurchaseOrderRead], summary="고객별 구매 주문 목록")
async def read_purchase_orders(
    customer_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await crm_crud.purchase_order.get_by_customer(db, customer_id=customer_id)


@router.get("/purchase_orders/{po_id}", response_model=crm_schemas.PurchaseOrderRead, summary="구매 주문 조회")
async def read_purchase_order(
    po_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_po = await crm_crud.purchase_order.get(db, po_id)
    if not db_po:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase order not found")
    return db_po


@router.delete("/purchase_orders/{po_id}", status_code=status.HTTP_204_NO_CONTENT, summary="구매 주문 삭제")
async def delete_purchase_order(
    po_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_qc_user),
):
    if not await crm_crud.purchase_order.delete(db, id=po_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase order not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
