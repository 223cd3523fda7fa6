# tests/domains/test_crm.py

"""
'crm' 도메인 (고객, 구매 주문) API 통합 테스트
"""

import pytest
from httpx import AsyncClient

from app.domains.crm import models as crm_models


@pytest.mark.asyncio
async def test_qc_creates_customer(qc_client: AsyncClient):
    response = await qc_client.post(
        "/api/v1/crm/customers", json={"code": "L-T", "name": "Larsen & Toubro", "address": "Mumbai"}
    )
    assert response.status_code == 201, response.text
    assert response.json()["code"] == "L-T"


@pytest.mark.asyncio
async def test_general_user_cannot_create_customer(authorized_client: AsyncClient):
    response = await authorized_client.post("/api/v1/crm/customers", json={"code": "X1", "name": "X"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_duplicate_customer_code(qc_client: AsyncClient, test_customer: crm_models.Customer):
    response = await qc_client.post("/api/v1/crm/customers", json={"code": test_customer.code, "name": "Dup"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Customer code already exists"


@pytest.mark.asyncio
async def test_list_and_update_customer(qc_client: AsyncClient, test_customer: crm_models.Customer):
    listed = await qc_client.get("/api/v1/crm/customers", params={"is_active": True})
    assert [c["code"] for c in listed.json()] == [test_customer.code]

    updated = await qc_client.patch(
        f"/api/v1/crm/customers/{test_customer.id}", json={"logo_url": "https://cdn.example.com/bf.png"}
    )
    assert updated.status_code == 200
    assert updated.json()["logo_url"] == "https://cdn.example.com/bf.png"

    missing = await qc_client.get("/api/v1/crm/customers/99999")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_purchase_orders(qc_client: AsyncClient, test_customer: crm_models.Customer):
    payload = {"customer_id": test_customer.id, "po_number": "4500012345", "line_number": "10",
               "part_number": "FLG-150-2IN", "drawing_rev": "C"}
    created = await qc_client.post("/api/v1/crm/purchase_orders", json=payload)
    assert created.status_code == 201, created.text
    po_id = created.json()["id"]

    listed = await qc_client.get("/api/v1/crm/purchase_orders", params={"customer_id": test_customer.id})
    assert [po["po_number"] for po in listed.json()] == ["4500012345"]

    orphan = await qc_client.post("/api/v1/crm/purchase_orders", json={**payload, "customer_id": 99999})
    assert orphan.status_code == 404
    assert orphan.json()["detail"] == "Customer not found"

    assert (await qc_client.delete(f"/api/v1/crm/purchase_orders/{po_id}")).status_code == 204
    assert (await qc_client.get(f"/api/v1/crm/purchase_orders/{po_id}")).status_code == 404


@pytest.mark.asyncio
async def test_admin_delete_customer_blocked_by_orders(admin_client: AsyncClient, db_session, test_customer):
    db_session.add(crm_models.PurchaseOrder(customer_id=test_customer.id, po_number="PO-1"))
    await db_session.commit()

    response = await admin_client.delete(f"/api/v1/crm/customers/{test_customer.id}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete customer with existing purchase orders"
