# tests/domains/test_lims.py

"""
'lims' 도메인 (시료, 시험, 결과, 특채) API 통합 테스트
"""

from datetime import datetime, UTC

import pytest
from httpx import AsyncClient

from app.domains.lims import models as lims_models
from app.domains.lims.crud import SAMPLE_TRANSITIONS, compute_verdict, sample as sample_crud


@pytest.mark.parametrize("value, min_spec, max_spec, expected", [
    (0.19, None, 0.35, lims_models.Verdict.PASS),
    (0.40, None, 0.35, lims_models.Verdict.FAIL),
    (480, 485, None, lims_models.Verdict.FAIL),
    (485, 485, None, lims_models.Verdict.PASS),
    (1.0, None, None, lims_models.Verdict.PASS),
])
def test_compute_verdict(value, min_spec, max_spec, expected):
    assert compute_verdict(value, min_spec, max_spec) == expected


@pytest.mark.asyncio
async def test_next_sample_code_is_sequential(db_session, sample_factory):
    await sample_factory()
    await sample_factory()
    assert await sample_crud.next_code(db_session, year=2024) == "S-2024-000003"
    assert await sample_crud.next_code(db_session, year=1999) == "S-1999-000001"


@pytest.mark.asyncio
async def test_create_sample(authorized_client: AsyncClient, test_heat, test_user):
    response = await authorized_client.post(
        "/api/v1/lims/samples", json={"heat_id": test_heat.id, "requested_by": " QC Manager ", "priority": "HIGH"}
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["code"] == f"S-{datetime.now(UTC).year}-000001"
    assert data["state"] == "PENDING"
    assert data["requested_by"] == "QC Manager"
    assert data["created_by_id"] == test_user.id


@pytest.mark.asyncio
async def test_create_heat_sample_requires_valid_heat(authorized_client: AsyncClient):
    response = await authorized_client.post("/api/v1/lims/samples", json={"requested_by": "QC"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid heat ID provided"

    response = await authorized_client.post("/api/v1/lims/samples", json={"heat_id": 99999, "requested_by": "QC"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_batch_sample_without_heat(authorized_client: AsyncClient):
    response = await authorized_client.post(
        "/api/v1/lims/samples", json={"source_type": "BATCH", "batch_no": "B-77", "requested_by": "Production"}
    )
    assert response.status_code == 201
    assert response.json()["heat_id"] is None


@pytest.mark.asyncio
async def test_register_and_state_transitions(authorized_client: AsyncClient, test_heat):
    created = (await authorized_client.post(
        "/api/v1/lims/samples", json={"heat_id": test_heat.id, "requested_by": "QC"}
    )).json()

    registered = await authorized_client.post(f"/api/v1/lims/samples/{created['id']}/register")
    assert registered.status_code == 200
    assert registered.json()["state"] == "REGISTERED"
    assert registered.json()["registered_at"] is not None

    again = await authorized_client.post(f"/api/v1/lims/samples/{created['id']}/register")
    assert again.status_code == 400
    assert again.json()["detail"] == "Only pending samples can be registered"

    skip = await authorized_client.patch(f"/api/v1/lims/samples/{created['id']}", json={"state": "APPROVED"})
    assert skip.status_code == 400
    assert skip.json()["detail"] == "Invalid sample state transition from REGISTERED to APPROVED"

    progress = await authorized_client.patch(f"/api/v1/lims/samples/{created['id']}", json={"state": "IN_PROGRESS"})
    assert progress.status_code == 200
    assert progress.json()["state"] == "IN_PROGRESS"


SAMPLE_STATE_PAIRS = [
    (current, target)
    for current in lims_models.SampleState
    for target in lims_models.SampleState
    if current != target
]


@pytest.mark.asyncio
@pytest.mark.parametrize("current, target", SAMPLE_STATE_PAIRS, ids=lambda s: s.value)
async def test_sample_state_transition_matrix(authorized_client: AsyncClient, sample_factory, current, target):
    sample = await sample_factory(state=current)
    response = await authorized_client.patch(f"/api/v1/lims/samples/{sample.id}", json={"state": target.value})
    if target in SAMPLE_TRANSITIONS[current]:
        assert response.status_code == 200, response.text
        assert response.json()["state"] == target.value
    else:
        assert response.status_code == 400
        assert response.json()["detail"] == (
            f"Invalid sample state transition from {current.value} to {target.value}"
        )


@pytest.mark.parametrize("current, allowed", [
    (lims_models.SampleState.REJECTED, [lims_models.SampleState.PENDING]),
    (lims_models.SampleState.COMPLETED, [lims_models.SampleState.APPROVED, lims_models.SampleState.IN_PROGRESS]),
    (lims_models.SampleState.APPROVED, [lims_models.SampleState.RELEASED, lims_models.SampleState.COMPLETED]),
    (lims_models.SampleState.RELEASED, []),
])
def test_sample_transition_table(current, allowed):
    assert SAMPLE_TRANSITIONS[current] == allowed


@pytest.mark.asyncio
async def test_completing_sample_sets_completed_at(authorized_client: AsyncClient, sample_factory):
    sample = await sample_factory(state=lims_models.SampleState.IN_PROGRESS)
    assert sample.completed_at is None

    response = await authorized_client.patch(f"/api/v1/lims/samples/{sample.id}", json={"state": "COMPLETED"})
    assert response.status_code == 200
    assert response.json()["completed_at"] is not None


@pytest.mark.asyncio
async def test_tests_and_results_flow(authorized_client: AsyncClient, test_heat):
    sample = (await authorized_client.post(
        "/api/v1/lims/samples", json={"heat_id": test_heat.id, "requested_by": "QC"}
    )).json()

    test = await authorized_client.post(
        f"/api/v1/lims/samples/{sample['id']}/tests",
        json={"category": "MECHANICAL", "method": "TENSILE", "standard": "ASTM E8"},
    )
    assert test.status_code == 201
    test_id = test.json()["id"]
    assert test.json()["status"] == "PENDING"

    passing = await authorized_client.post(
        f"/api/v1/lims/tests/{test_id}/results",
        json={"parameter": "UTS", "value": 520, "unit": "MPa", "min_spec": 485},
    )
    assert passing.status_code == 201
    assert passing.json()["verdict"] == "PASS"

    failing = await authorized_client.post(
        f"/api/v1/lims/tests/{test_id}/results",
        json={"parameter": "YS", "value": 240, "unit": "MPa", "min_spec": 250},
    )
    assert failing.json()["verdict"] == "FAIL"

    explicit = await authorized_client.post(
        f"/api/v1/lims/tests/{test_id}/results",
        json={"parameter": "Elongation", "value": 21, "min_spec": 22, "verdict": "PASS_WITH_DEVIATION"},
    )
    assert explicit.json()["verdict"] == "PASS_WITH_DEVIATION"

    completed = await authorized_client.patch(f"/api/v1/lims/tests/{test_id}", json={"status": "COMPLETED"})
    assert completed.status_code == 200
    assert completed.json()["completed_at"] is not None

    detail = await authorized_client.get(f"/api/v1/lims/samples/{sample['id']}")
    assert detail.status_code == 200
    body = detail.json()
    assert body["heat"]["heat_no"] == test_heat.heat_no
    assert body["heat"]["supplier_code"] == "SUP001"
    assert len(body["tests"][0]["results"]) == 3

    blocked = await authorized_client.delete(f"/api/v1/lims/samples/{sample['id']}")
    assert blocked.status_code == 400
    assert blocked.json()["detail"] == "Cannot delete sample with existing tests"

    assert (await authorized_client.delete(f"/api/v1/lims/tests/{test_id}")).status_code == 204
    assert (await authorized_client.delete(f"/api/v1/lims/samples/{sample['id']}")).status_code == 204


@pytest.mark.asyncio
async def test_result_for_missing_test(authorized_client: AsyncClient):
    response = await authorized_client.post("/api/v1/lims/tests/99999/results", json={"parameter": "C", "value": 0.2})
    assert response.status_code == 404
    assert response.json()["detail"] == "Test not found"


@pytest.mark.asyncio
async def test_list_samples_filters(authorized_client: AsyncClient, sample_factory):
    await sample_factory(state=lims_models.SampleState.APPROVED)
    await sample_factory(state=lims_models.SampleState.REGISTERED)

    response = await authorized_client.get("/api/v1/lims/samples", params={"state": "APPROVED"})
    assert response.status_code == 200
    body = response.json()
    assert body["meta"]["total"] == 1
    assert body["data"][0]["test_count"] == 2
    assert body["data"][0]["heat"]["supplier_name"] == "Steel Corp India Ltd"


DEVIATION_PAYLOAD = {
    "parameter": "Elongation",
    "original_value": ">= 22 %",
    "deviated_value": ">= 21 %",
    "concession_ref": "CON-2024-001",
}


@pytest.mark.asyncio
async def test_deviation_requires_qc(authorized_client: AsyncClient, sample_factory):
    sample = await sample_factory()
    denied = await authorized_client.post(f"/api/v1/lims/samples/{sample.id}/deviations", json=DEVIATION_PAYLOAD)
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_qc_records_deviation(qc_client: AsyncClient, sample_factory):
    sample = await sample_factory()
    created = await qc_client.post(f"/api/v1/lims/samples/{sample.id}/deviations", json=DEVIATION_PAYLOAD)
    assert created.status_code == 201
    listed = await qc_client.get(f"/api/v1/lims/samples/{sample.id}/deviations")
    assert [d["concession_ref"] for d in listed.json()] == ["CON-2024-001"]
