# tests/domains/test_sup.py

"""
'sup' 도메인 (공급업체) API 통합 테스트
"""

import pytest
from httpx import AsyncClient

from app.domains.sup import models as sup_models
from app.domains.mat import models as mat_models


@pytest.mark.asyncio
async def test_create_supplier_normalizes_code_and_email(authorized_client: AsyncClient):
    payload = {"code": " sup-100 ", "name": "  Tata Steel  ", "email": "Sales@TataSteel.COM"}
    response = await authorized_client.post("/api/v1/sup/suppliers", json=payload)
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["code"] == "SUP-100"
    assert data["name"] == "Tata Steel"
    assert data["email"] == "sales@tatasteel.com"
    assert data["is_active"] is True


@pytest.mark.asyncio
async def test_create_supplier_duplicate_code(authorized_client: AsyncClient, test_supplier: sup_models.Supplier):
    response = await authorized_client.post(
        "/api/v1/sup/suppliers", json={"code": test_supplier.code.lower(), "name": "Copycat"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Supplier code already exists"


@pytest.mark.asyncio
async def test_create_supplier_rejects_bad_code(authorized_client: AsyncClient):
    response = await authorized_client.post("/api/v1/sup/suppliers", json={"code": "SUP 1!", "name": "Bad"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_suppliers_with_filters_and_meta(authorized_client: AsyncClient, test_heat: mat_models.Heat):
    await authorized_client.post("/api/v1/sup/suppliers", json={"code": "SUP002", "name": "Metal Works Pvt Ltd"})

    response = await authorized_client.get("/api/v1/sup/suppliers", params={"limit": 1, "sort_by": "code", "sort_order": "asc"})
    assert response.status_code == 200
    body = response.json()
    assert body["meta"] == {"total": 2, "page": 1, "limit": 1, "total_pages": 2}
    assert body["data"][0]["code"] == "SUP001"
    assert body["data"][0]["heat_count"] == 1

    filtered = await authorized_client.get("/api/v1/sup/suppliers", params={"name": "metal"})
    assert [s["code"] for s in filtered.json()["data"]] == ["SUP002"]


@pytest.mark.asyncio
async def test_read_supplier_with_heats(authorized_client: AsyncClient, test_heat: mat_models.Heat):
    response = await authorized_client.get(f"/api/v1/sup/suppliers/{test_heat.supplier_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["heat_count"] == 1
    assert data["heats"][0]["heat_no"] == test_heat.heat_no


@pytest.mark.asyncio
async def test_update_supplier(authorized_client: AsyncClient, test_supplier: sup_models.Supplier):
    response = await authorized_client.patch(
        f"/api/v1/sup/suppliers/{test_supplier.id}", json={"phone": "+91-20-5555", "is_active": False}
    )
    assert response.status_code == 200
    assert response.json()["phone"] == "+91-20-5555"
    assert response.json()["is_active"] is False

    missing = await authorized_client.patch("/api/v1/sup/suppliers/99999", json={"name": "Ghost"})
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_delete_supplier_with_heats_is_blocked(authorized_client: AsyncClient, test_heat: mat_models.Heat):
    response = await authorized_client.delete(f"/api/v1/sup/suppliers/{test_heat.supplier_id}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete supplier with existing heat records"


@pytest.mark.asyncio
async def test_delete_supplier(authorized_client: AsyncClient, test_supplier: sup_models.Supplier):
    response = await authorized_client.delete(f"/api/v1/sup/suppliers/{test_supplier.id}")
    assert response.status_code == 204
    assert (await authorized_client.get(f"/api/v1/sup/suppliers/{test_supplier.id}")).status_code == 404
