# tests/domains/test_rpt.py

"""
'rpt' 도메인 (MTC 성적서) API 통합 테스트
"""

from datetime import datetime, UTC

import pytest
from httpx import AsyncClient

from app.domains.rpt import crud as rpt_crud
from app.domains.rpt import models as rpt_models
from app.domains.rpt.crud import REPORT_TRANSITIONS

REPORT_API = "/api/v1/rpt/reports"


@pytest.mark.asyncio
async def test_create_report(qc_client: AsyncClient, sample_factory, test_qc_user):
    sample = await sample_factory()
    response = await qc_client.post(REPORT_API, json={"sample_id": sample.id, "remarks": "First issue"})
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["report_no"] == f"MTC-{datetime.now(UTC).year}-000001"
    assert data["status"] == "DRAFT"
    assert data["version"] == 1
    assert data["created_by_id"] == test_qc_user.id

    second = await qc_client.post(REPORT_API, json={"sample_id": sample.id})
    assert second.json()["report_no"] == f"MTC-{datetime.now(UTC).year}-000002"


@pytest.mark.asyncio
async def test_create_report_for_missing_sample(qc_client: AsyncClient):
    response = await qc_client.post(REPORT_API, json={"sample_id": 99999})
    assert response.status_code == 404
    assert response.json()["detail"] == "Sample not found"


@pytest.mark.asyncio
async def test_create_report_requires_completed_test(qc_client: AsyncClient):
    sample = (await qc_client.post(
        "/api/v1/lims/samples", json={"source_type": "BATCH", "batch_no": "B-01", "requested_by": "QC"}
    )).json()
    response = await qc_client.post(REPORT_API, json={"sample_id": sample["id"]})
    assert response.status_code == 400
    assert response.json()["detail"] == "Sample must have at least one completed test"


@pytest.mark.asyncio
async def test_status_transitions_and_version(qc_client: AsyncClient, sample_factory):
    sample = await sample_factory()
    report = (await qc_client.post(REPORT_API, json={"sample_id": sample.id})).json()

    invalid = await qc_client.patch(f"{REPORT_API}/{report['id']}", json={"status": "RELEASED"})
    assert invalid.status_code == 400
    assert invalid.json()["detail"] == "Invalid status transition from DRAFT to RELEASED"

    cancelled = await qc_client.patch(f"{REPORT_API}/{report['id']}", json={"status": "CANCELLED"})
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"
    assert cancelled.json()["version"] == 2

    back = await qc_client.patch(f"{REPORT_API}/{report['id']}", json={"status": "DRAFT", "remarks": "Reopened"})
    assert back.json()["status"] == "DRAFT"
    assert back.json()["remarks"] == "Reopened"
    assert back.json()["version"] == 3


REPORT_STATUS_PAIRS = [
    (current, target)
    for current in rpt_models.ReportStatus
    for target in rpt_models.ReportStatus
    if current != target
]


@pytest.mark.asyncio
@pytest.mark.parametrize("current, target", REPORT_STATUS_PAIRS, ids=lambda s: s.value)
async def test_report_status_transition_matrix(qc_client: AsyncClient, db_session, sample_factory, current, target):
    sample = await sample_factory()
    created = (await qc_client.post(REPORT_API, json={"sample_id": sample.id})).json()
    db_report = await rpt_crud.report.get(db_session, created["id"])
    db_report.status = current
    db_session.add(db_report)
    await db_session.commit()

    response = await qc_client.patch(f"{REPORT_API}/{created['id']}", json={"status": target.value})
    if current == rpt_models.ReportStatus.RELEASED:
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot update a released report"
    elif target in REPORT_TRANSITIONS[current]:
        assert response.status_code == 200, response.text
        assert response.json()["status"] == target.value
        assert response.json()["version"] == 2
    else:
        assert response.status_code == 400
        assert response.json()["detail"] == f"Invalid status transition from {current.value} to {target.value}"


@pytest.mark.asyncio
async def test_review_report_back_to_draft(qc_client: AsyncClient, sample_factory):
    sample = await sample_factory()
    report = (await qc_client.post(REPORT_API, json={"sample_id": sample.id})).json()
    review = await qc_client.patch(f"{REPORT_API}/{report['id']}", json={"status": "REVIEW"})
    assert review.json()["status"] == "REVIEW"

    draft = await qc_client.patch(f"{REPORT_API}/{report['id']}", json={"status": "DRAFT"})
    assert draft.status_code == 200
    assert draft.json()["status"] == "DRAFT"
    assert draft.json()["version"] == 3


@pytest.mark.asyncio
async def test_general_user_cannot_update_report(authorized_client: AsyncClient, sample_factory):
    sample = await sample_factory()
    report = (await authorized_client.post(REPORT_API, json={"sample_id": sample.id})).json()
    response = await authorized_client.patch(f"{REPORT_API}/{report['id']}", json={"remarks": "x"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_generate_and_release_flow(qc_client: AsyncClient, sample_factory, test_qc_user):
    sample = await sample_factory()
    report = (await qc_client.post(REPORT_API, json={"sample_id": sample.id})).json()

    early = await qc_client.post(f"{REPORT_API}/{report['id']}/release")
    assert early.status_code == 400
    assert early.json()["detail"] == "Report must be reviewed before release"

    generated = await qc_client.post(f"{REPORT_API}/{report['id']}/generate")
    assert generated.status_code == 200, generated.text
    body = generated.json()
    assert body["status"] == "REVIEW"
    assert len(body["checksum"]) == 64
    mtc = body["mtc_data"]
    assert mtc["certificate_no"] == report["report_no"]
    assert mtc["supplier"] == {"name": "Steel Corp India Ltd", "code": "SUP001"}
    assert mtc["material"]["heat_no"] == "HT-2024-001234"
    assert [r["parameter"] for r in mtc["chemical_composition"]] == ["C", "Mn"]
    assert [r["parameter"] for r in mtc["mechanical_properties"]] == ["UTS", "YS", "Elongation"]
    assert mtc["sample_details"]["code"] == sample.code

    # 같은 시험 데이터로 다시 생성하면 체크섬이 동일합니다.
    again = await qc_client.post(f"{REPORT_API}/{report['id']}/generate")
    assert again.json()["checksum"] == body["checksum"]

    released = await qc_client.post(f"{REPORT_API}/{report['id']}/release")
    assert released.status_code == 200
    assert released.json()["status"] == "RELEASED"
    assert released.json()["released_by_id"] == test_qc_user.id
    assert released.json()["released_at"] is not None

    sample_after = (await qc_client.get(f"/api/v1/lims/samples/{sample.id}")).json()
    assert sample_after["state"] == "COMPLETED"
    assert sample_after["completed_at"] is not None

    twice = await qc_client.post(f"{REPORT_API}/{report['id']}/release")
    assert twice.json()["detail"] == "Report is already released"

    locked = await qc_client.patch(f"{REPORT_API}/{report['id']}", json={"remarks": "late"})
    assert locked.status_code == 400
    assert locked.json()["detail"] == "Cannot update a released report"


@pytest.mark.asyncio
async def test_release_requires_all_tests_completed(qc_client: AsyncClient, sample_factory):
    sample = await sample_factory()
    await qc_client.post(
        f"/api/v1/lims/samples/{sample.id}/tests",
        json={"category": "HARDNESS", "method": "BRINELL", "standard": "ASTM E10"},
    )
    report = (await qc_client.post(REPORT_API, json={"sample_id": sample.id})).json()
    await qc_client.post(f"{REPORT_API}/{report['id']}/generate")

    response = await qc_client.post(f"{REPORT_API}/{report['id']}/release")
    assert response.status_code == 400
    assert response.json()["detail"] == "All tests must be completed before release"


@pytest.mark.asyncio
async def test_list_reports_filters(qc_client: AsyncClient, sample_factory):
    sample = await sample_factory()
    first = (await qc_client.post(REPORT_API, json={"sample_id": sample.id})).json()
    await qc_client.post(REPORT_API, json={"sample_id": sample.id})
    await qc_client.post(f"{REPORT_API}/{first['id']}/generate")

    in_review = await qc_client.get(REPORT_API, params={"status": "REVIEW"})
    assert in_review.status_code == 200
    body = in_review.json()
    assert body["meta"] == {"total": 1, "page": 1, "limit": 10, "total_pages": 1}
    assert body["data"][0]["sample"]["heat_no"] == "HT-2024-001234"
    assert body["data"][0]["sample"]["supplier_code"] == "SUP001"

    ascending = await qc_client.get(REPORT_API, params={"sort_by": "report_no", "sort_order": "asc"})
    numbers = [r["report_no"] for r in ascending.json()["data"]]
    assert numbers == sorted(numbers)

    by_no = await qc_client.get(REPORT_API, params={"report_no": first["report_no"].lower()})
    assert by_no.json()["meta"]["total"] == 1


@pytest.mark.asyncio
async def test_report_detail_and_pdf_download(qc_client: AsyncClient, sample_factory):
    sample = await sample_factory()
    report = (await qc_client.post(REPORT_API, json={"sample_id": sample.id})).json()

    detail = await qc_client.get(f"{REPORT_API}/{report['id']}")
    assert detail.status_code == 200
    assert detail.json()["sample"]["heat"]["supplier_name"] == "Steel Corp India Ltd"
    assert len(detail.json()["sample"]["tests"]) == 2

    download = await qc_client.get(f"{REPORT_API}/{report['id']}/download")
    assert download.status_code == 200
    assert download.headers["content-type"] == "application/pdf"
    assert download.headers["content-disposition"] == f'attachment; filename="MTC-{report["report_no"]}.pdf"'
    assert download.content.startswith(b"%PDF")

    missing = await qc_client.get(f"{REPORT_API}/99999")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Report not found"


@pytest.mark.asyncio
async def test_delete_report(admin_client: AsyncClient, db_session, sample_factory):
    sample = await sample_factory()
    draft = (await admin_client.post(REPORT_API, json={"sample_id": sample.id})).json()
    assert (await admin_client.delete(f"{REPORT_API}/{draft['id']}")).status_code == 204

    released = (await admin_client.post(REPORT_API, json={"sample_id": sample.id})).json()
    db_report = await rpt_crud.report.get(db_session, released["id"])
    db_report.status = rpt_models.ReportStatus.RELEASED
    db_session.add(db_report)
    await db_session.commit()

    response = await admin_client.delete(f"{REPORT_API}/{released['id']}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete a released report"
