# app/domains/rpa/services.py

"""
'rpa' 도메인의 성적서 자동 발행 서비스입니다.

흐름:
1. generate_report: 검증 -> 템플릿 결정 -> 번호/버전 채번 -> 병합 데이터 수집 -> DRAFT 저장 -> 작업 큐 등록
2. run_report_generation (arq 워커): 렌더링 -> 파일 생성 -> 체크섬 -> 저장 -> PREVIEW/RELEASED
3. release / sign / distribute / download / verify 등 후속 처리
"""

import logging
import secrets
import string
from datetime import datetime, date, UTC
from pathlib import Path
from typing import Optional, List, Dict, Any, Tuple

import aiofiles
from fastapi import HTTPException, status
from jinja2 import TemplateSyntaxError
from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from . import models as rpa_models
from . import schemas as rpa_schemas
from . import crud as rpa_crud
from .engine import template_engine, DEFAULT_TEMPLATE
from .generators import (
    EXTENSIONS, MIME_TYPES, build_document, calculate_checksum, verify_checksum, generate_qr_code,
)

logger = logging.getLogger(__name__)

GENERATION_TASK = "process_report_generation_task"
REPORT_NO_ATTEMPTS = 3
VERIFY_CODE_ALPHABET = string.ascii_uppercase + string.digits
MECHANICAL_PARAMETERS = {
    "UTS": "UTS_MPa",
    "YS": "YS_MPa",
    "Elongation": "El_pct",
    "ReductionArea": "RA_pct",
}
REPORT_TITLES = {
    rpa_models.ReportType.COA: "Certificate of Analysis",
    rpa_models.ReportType.MTC: "Mill Test Certificate",
    rpa_models.ReportType.HT_REPORT: "Heat Treatment Report",
    rpa_models.ReportType.DISPATCH: "Dispatch Certificate",
    rpa_models.ReportType.PPAP: "PPAP Submission",
    rpa_models.ReportType.CHARPY: "Charpy Impact Test Report",
    rpa_models.ReportType.UT_MAP: "Ultrasonic Test Map",
}


# =============================================================================
# 1. 파일 저장소
# =============================================================================
def _storage_root() -> Path:
    # settings 는 테스트에서 monkeypatch 될 수 있으므로 호출 시점에 읽습니다.
    return Path(settings.UPLOAD_DIR)


async def store_file(report_id: int, fmt: rpa_models.ReportFormat, content: bytes) -> str:
    """파일을 {UPLOAD_DIR}/reports/{id}.{ext} 에 저장하고 상대 경로를 반환합니다."""
    relative_path = f"reports/{report_id}.{EXTENSIONS[fmt]}"
    file_path = _storage_root() / relative_path
    file_path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(file_path, "wb") as f:
        await f.write(content)
    return relative_path


async def read_file(relative_path: str) -> bytes:
    async with aiofiles.open(_storage_root() / relative_path, "rb") as f:
        return await f.read()


async def read_report_file(report) -> bytes:
    """저장된 성적서 파일을 읽습니다. 파일이 없으면 무결성 오류(500)로 처리합니다."""
    try:
        return await read_file(report.file_url)
    except FileNotFoundError:
        logger.error("Stored file %s is missing for report %s v%s", report.file_url, report.report_no, report.version)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Report file integrity check failed")


# =============================================================================
# 2. 채번 / 템플릿 결정 / 병합 데이터
# =============================================================================
async def next_report_number(db: AsyncSession) -> str:
    """{PLANT}-{YY}-{SEQ:06d}, 공장/연도별로 가장 큰 번호 + 1."""
    prefix = f"{settings.REPORT_PLANT_CODE}-{datetime.now(UTC):%y}-"
    last = await rpa_crud.generated_report.last_report_no(db, prefix=prefix)
    seq = int(last.rsplit("-", 1)[-1]) + 1 if last else 1
    return f"{prefix}{seq:06d}"


def _version_key(version: str) -> Tuple[int, int]:
    major, _, minor = version.partition(".")
    return int(major), int(minor or 0)


def next_version(versions: List[str]) -> str:
    """가장 높은 버전의 다음 minor ("1.0" -> "1.1")."""
    if not versions:
        return "1.0"
    major, minor = max(_version_key(v) for v in versions)
    return f"{major}.{minor + 1}"


def generate_verify_code(length: int = 8) -> str:
    return "".join(secrets.choice(VERIFY_CODE_ALPHABET) for _ in range(length))


async def resolve_template(
    db: AsyncSession,
    *,
    template_id: Optional[int],
    report_type: rpa_models.ReportType,
    customer_id: Optional[int],
):
    """지정 템플릿 -> 고객 전용 템플릿 -> 유형별 기본 템플릿 -> 내장 기본 템플릿 순으로 결정합니다."""
    if template_id is not None:
        return await rpa_crud.report_template.get_or_404(db, template_id)
    found = await rpa_crud.report_template.find_for(db, report_type=report_type, customer_id=customer_id)
    return found or DEFAULT_TEMPLATE


def _template_name(template) -> Optional[str]:
    if isinstance(template, rpa_models.ReportTemplate):
        return template.name
    return template.get("name")


def _mechanical_data(test) -> Dict[str, Any]:
    data: Dict[str, Any] = {key: None for key in MECHANICAL_PARAMETERS.values()}
    for result in test.results:
        key = MECHANICAL_PARAMETERS.get(result.parameter)
        if key:
            data[key] = result.value
    data["spec"] = test.standard
    passed = bool(test.results) and all(r.verdict.value == "PASS" for r in test.results)
    data["verdict"] = "PASS" if passed else "FAIL"
    return data


def _signature_data(signatures) -> List[Dict[str, Any]]:
    return [
        {
            "role": s.role,
            "name": f"User #{s.user_id}",
            "signature_type": getattr(s.signature_type, "value", s.signature_type),
            "signed_at": s.signed_at.isoformat() if s.signed_at else None,
        }
        for s in signatures
    ]


def collect_merge_data(*, report_type: rpa_models.ReportType, customer, po=None, sample=None,
                       batch_no: Optional[str] = None, custom_fields: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """고객/PO/시료(히트, 시험 결과, 특채)에서 템플릿 병합 데이터를 수집합니다."""
    data: Dict[str, Any] = {
        "report_title": REPORT_TITLES.get(report_type, "Test Report"),
        "customer": {
            "name": customer.name,
            "code": customer.code,
            "address": customer.address,
            "logo": customer.logo_url,
        },
        "po": None,
        "part": None,
        "trace": None,
        "chemistry": [],
        "mechanical": {},
        "hardness": [],
        "impact": [],
        "deviations": [],
        "signatures": [],
    }
    if po is not None:
        data["po"] = {"number": po.po_number, "line": po.line_number}
        data["part"] = {"number": po.part_number, "drawing_rev": po.drawing_rev, "description": po.description}

    if sample is not None:
        heat = sample.heat
        data["trace"] = {
            "heat_no": heat.heat_no if heat else None,
            "batch_no": batch_no or sample.batch_no,
            "supplier": heat.supplier.name if heat and heat.supplier else None,
            "mtc_no": heat.mtc_number if heat else None,
            "production_order": (heat.production_order if heat else None) or sample.code,
        }
        for test in sample.tests:
            category = test.category.value
            if category == "CHEMICAL":
                data["chemistry"].extend(
                    {"element": r.parameter, "min": r.min_spec, "max": r.max_spec,
                     "result": r.value, "unit": r.unit, "verdict": r.verdict.value}
                    for r in test.results
                )
            elif category == "MECHANICAL" and not data["mechanical"]:
                data["mechanical"] = _mechanical_data(test)
            elif category == "HARDNESS":
                data["hardness"].extend(
                    {"scale": test.method, "location": r.specimen_id or "Center", "spec_min": r.min_spec,
                     "spec_max": r.max_spec, "result": r.value, "verdict": r.verdict.value}
                    for r in test.results
                )
            elif category == "IMPACT":
                data["impact"].extend(
                    {"temp": r.test_temperature, "energy": r.unit or "J",
                     "spec": f"Min {r.min_spec}" if r.min_spec is not None else "-",
                     "result": r.value, "verdict": r.verdict.value}
                    for r in test.results
                )
        data["deviations"] = [
            {"parameter": d.parameter, "original": d.original_value, "deviation": d.deviated_value,
             "concession_ref": d.concession_ref, "approved_by": d.approved_by}
            for d in sample.deviations
        ]
    elif batch_no:
        data["trace"] = {"heat_no": None, "batch_no": batch_no, "supplier": None,
                         "mtc_no": None, "production_order": None}

    if custom_fields:
        data.update(custom_fields)
    return data


# =============================================================================
# 3. 성적서 생성 요청
# =============================================================================
async def _load_sample(db: AsyncSession, sample_id: int):
    from app.domains.lims import crud as lims_crud
    from app.domains.lims.models import SampleState, Verdict

    sample = await lims_crud.sample.get_with_relations(db, id=sample_id)
    if not sample:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sample not found")
    if sample.state not in (SampleState.APPROVED, SampleState.RELEASED):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Sample must be approved before report generation")
    if any(r.verdict == Verdict.FAIL for t in sample.tests for r in t.results):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Cannot generate report: Some mandatory tests failed")
    return sample


async def generate_report(
    db: AsyncSession,
    *,
    queue,
    request: rpa_schemas.GenerateReportRequest,
    user_id: Optional[int],
    reissue_of: Optional[rpa_models.GeneratedReport] = None,
    reissue_reason: Optional[str] = None,
) -> rpa_schemas.GenerateReportResponse:
    """
    성적서를 DRAFT 로 저장하고 파일 생성 작업을 큐에 등록합니다.
    reissue_of 가 주어지면 같은 번호로 다음 minor 버전을 발행합니다.
    """
    from app.domains.crm import crud as crm_crud

    sample = await _load_sample(db, request.sample_id) if request.sample_id is not None else None
    customer = await crm_crud.customer.get_or_404(db, request.customer_id)
    po = await crm_crud.purchase_order.get(db, request.po_id) if request.po_id is not None else None

    template = await resolve_template(
        db, template_id=request.template_id, report_type=request.report_type, customer_id=customer.id,
    )
    template_id = template.id if isinstance(template, rpa_models.ReportTemplate) else None

    merge_data = collect_merge_data(
        report_type=request.report_type, customer=customer, po=po, sample=sample,
        batch_no=request.batch_no, custom_fields=request.custom_fields,
    )

    async def allocate() -> Tuple[str, str, int]:
        if reissue_of is not None:
            versions = await rpa_crud.generated_report.get_versions(db, report_no=reissue_of.report_no)
            revision = max(r.revision for r in versions) + 1
            return reissue_of.report_no, next_version([r.version for r in versions]), revision
        return await next_report_number(db), "1.0", 0

    report_no, version, revision = await allocate()
    for attempt in range(1, REPORT_NO_ATTEMPTS + 1):
        verify_code = generate_verify_code()
        qr_url = f"{settings.REPORT_VERIFICATION_URL}/{report_no}?code={verify_code}"
        qr_code = generate_qr_code(qr_url)
        report = rpa_models.GeneratedReport(
            report_no=report_no,
            report_type=request.report_type,
            version=version,
            revision=revision,
            is_reissue=reissue_of is not None,
            reissue_reason=reissue_reason,
            template_id=template_id,
            customer_id=customer.id,
            po_id=request.po_id,
            sample_id=request.sample_id,
            batch_no=request.batch_no,
            status=rpa_models.GeneratedReportStatus.DRAFT,
            format=request.format,
            merge_data={
                **merge_data,
                "report_no": report_no,
                "report_date": date.today().isoformat(),
                "version": version,
                "qr_code": qr_code,
                "qr_url": qr_url,
            },
            qr_code=qr_code,
            qr_url=qr_url,
            verify_code=verify_code,
            created_by_id=user_id,
        )
        # 동시 요청이 같은 번호/버전을 먼저 저장했으면 다시 채번합니다.
        try:
            async with db.begin_nested():
                db.add(report)
        except IntegrityError:
            logger.warning("Report number %s v%s already taken (attempt %d)", report_no, version, attempt)
            if attempt == REPORT_NO_ATTEMPTS:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                    detail=f"Report number {report_no} v{version} is already in use")
            report_no, version, revision = await allocate()
        else:
            break

    rpa_crud.report_activity.log(
        db, report_id=report.id, action=rpa_models.ReportAction.CREATED, user_id=user_id,
        details={"report_type": request.report_type.value, "format": request.format.value},
    )
    await db.commit()
    await db.refresh(report)

    await queue.enqueue_job(GENERATION_TASK, report.id, template_id, request.auto_release, user_id)
    logger.info("Report %s v%s queued for generation (id=%s)", report.report_no, report.version, report.id)
    return rpa_schemas.GenerateReportResponse(report_id=report.id, report_no=report.report_no, version=report.version)


async def bulk_generate(
    db: AsyncSession, *, queue, request: rpa_schemas.BulkGenerateRequest, user_id: Optional[int]
) -> rpa_schemas.BulkGenerateResponse:
    results: List[rpa_schemas.BulkGenerateItem] = []
    for sample_id in request.sample_ids:
        single = rpa_schemas.GenerateReportRequest(**request.options.model_dump(), sample_id=sample_id)
        try:
            response = await generate_report(db, queue=queue, request=single, user_id=user_id)
        except HTTPException as e:
            results.append(rpa_schemas.BulkGenerateItem(id=sample_id, status="error", error=str(e.detail)))
        except Exception as e:
            await db.rollback()
            logger.error("Bulk generation failed for sample %s", sample_id, exc_info=True)
            results.append(rpa_schemas.BulkGenerateItem(id=sample_id, status="error", error=str(e)))
        else:
            results.append(rpa_schemas.BulkGenerateItem(id=sample_id, status="success", result=response))
    success = sum(1 for r in results if r.status == "success")
    return rpa_schemas.BulkGenerateResponse(
        total=len(results), success=success, failed=len(results) - success, results=results,
    )


async def reissue_report(
    db: AsyncSession, *, queue, report_no: str, request: rpa_schemas.ReissueRequest, user_id: Optional[int]
) -> rpa_schemas.GenerateReportResponse:
    versions = await rpa_crud.generated_report.get_versions(db, report_no=report_no)
    if not versions:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Report {report_no} not found")
    latest = max(versions, key=lambda r: _version_key(r.version))

    overrides = request.options or rpa_schemas.ReissueOverrides()
    generate_request = rpa_schemas.GenerateReportRequest(
        report_type=latest.report_type,
        format=overrides.format or latest.format,
        customer_id=overrides.customer_id or latest.customer_id,
        po_id=overrides.po_id if overrides.po_id is not None else latest.po_id,
        batch_no=overrides.batch_no or latest.batch_no,
        template_id=overrides.template_id if overrides.template_id is not None else latest.template_id,
        auto_release=overrides.auto_release,
        custom_fields=overrides.custom_fields,
        sample_id=latest.sample_id,
    )
    return await generate_report(
        db, queue=queue, request=generate_request, user_id=user_id,
        reissue_of=latest, reissue_reason=request.reason,
    )


async def preview_report(
    db: AsyncSession, *, queue, request: rpa_schemas.GenerateReportRequest, user_id: Optional[int]
) -> rpa_schemas.PreviewResponse:
    request = request.model_copy(update={"auto_release": False})
    response = await generate_report(db, queue=queue, request=request, user_id=user_id)
    report = await rpa_crud.generated_report.get_or_404(db, response.report_id)
    template = await resolve_template(
        db, template_id=report.template_id, report_type=report.report_type, customer_id=report.customer_id,
    )
    html = template_engine.render(template, report.merge_data or {})
    return rpa_schemas.PreviewResponse(
        report_id=report.id, preview_url=f"/api/v1/rpa/{report.id}/preview", html=html,
    )


# =============================================================================
# 4. 파일 생성 작업 (arq 워커에서 호출)
# =============================================================================
async def run_report_generation(
    db: AsyncSession,
    *,
    report_id: int,
    template_id: Optional[int],
    auto_release: bool,
    user_id: Optional[int],
) -> rpa_models.GeneratedReport:
    report = await rpa_crud.generated_report.get_or_404(db, report_id)
    signatures = await rpa_crud.report_signature.get_for_report(db, report_id=report.id)
    merge_data = dict(report.merge_data or {})
    merge_data["signatures"] = _signature_data(signatures)

    template = await resolve_template(
        db, template_id=template_id, report_type=report.report_type, customer_id=report.customer_id,
    )
    # 렌더링 실패(템플릿 오류)도 작업 실패로 처리됩니다.
    html, prepared = template_engine.render_document(template, merge_data)

    content = build_document(report.format, prepared, report.version)
    checksum = calculate_checksum(content)
    file_url = await store_file(report.id, report.format, content)

    now = datetime.now(UTC)
    report.merge_data = merge_data
    report.report_metadata = {"template": _template_name(template), "rendered_html": html}
    report.file_url = file_url
    report.file_size = len(content)
    report.checksum = checksum
    report.generated_at = now
    if auto_release:
        report.status = rpa_models.GeneratedReportStatus.RELEASED
        report.released_at = now
    else:
        report.status = rpa_models.GeneratedReportStatus.PREVIEW
    db.add(report)

    db.add(rpa_models.ReportVerification(
        report_no=report.report_no, version=report.version, checksum=checksum, verify_code=report.verify_code,
    ))
    rpa_crud.report_activity.log(
        db, report_id=report.id, action=rpa_models.ReportAction.GENERATED, user_id=user_id,
        details={"format": report.format.value, "file_size": len(content), "checksum": checksum},
    )
    if auto_release:
        rpa_crud.report_activity.log(
            db, report_id=report.id, action=rpa_models.ReportAction.RELEASED, user_id=user_id,
            details={"auto_release": True},
        )
    await db.commit()
    await db.refresh(report)
    logger.info("Report %s v%s generated (%s bytes, %s)", report.report_no, report.version,
                report.file_size, report.status.value)
    return report


async def mark_report_failed(db: AsyncSession, *, report_id: int, error: str, user_id: Optional[int] = None) -> None:
    report = await rpa_crud.generated_report.get(db, report_id)
    if not report:
        logger.warning("Cannot mark missing report %s as failed", report_id)
        return
    report.status = rpa_models.GeneratedReportStatus.FAILED
    report.report_metadata = {"error": error, "timestamp": datetime.now(UTC).isoformat()}
    db.add(report)
    rpa_crud.report_activity.log(
        db, report_id=report.id, action=rpa_models.ReportAction.FAILED, user_id=user_id, details={"error": error},
    )
    await db.commit()


# =============================================================================
# 5. 발행 / 서명 / 배포
# =============================================================================
def _add_signature(db: AsyncSession, report_id: int, user_id: int, sig: rpa_schemas.SignatureCreate):
    signature = rpa_models.ReportSignature(report_id=report_id, user_id=user_id, **sig.model_dump())
    db.add(signature)
    rpa_crud.report_activity.log(
        db, report_id=report_id, action=rpa_models.ReportAction.SIGNED, user_id=user_id,
        details={"role": sig.role, "signature_type": sig.signature_type.value},
    )
    return signature


async def release_report(
    db: AsyncSession, *, report_id: int, request: rpa_schemas.ReleaseRequest, user_id: int
) -> rpa_schemas.ReleaseResponse:
    report = await rpa_crud.generated_report.get_or_404(db, report_id)
    if report.status != rpa_models.GeneratedReportStatus.PREVIEW:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Report must be in PREVIEW state to release")

    for sig in request.signatures:
        _add_signature(db, report.id, user_id, sig)
    report.status = rpa_models.GeneratedReportStatus.RELEASED
    report.released_at = datetime.now(UTC)
    db.add(report)
    rpa_crud.report_activity.log(
        db, report_id=report.id, action=rpa_models.ReportAction.RELEASED, user_id=user_id,
        details={"signature_count": len(request.signatures)},
    )
    await db.commit()
    logger.info("Report %s v%s released", report.report_no, report.version)

    if request.auto_distribute:
        channels = request.distribution_channels or [rpa_models.DistributionChannel.EMAIL]
        await distribute_report(
            db, report_id=report.id,
            request=rpa_schemas.DistributeRequest(channels=channels, recipients=request.recipients),
            user_id=user_id,
        )
    return rpa_schemas.ReleaseResponse(
        report_id=report.id, distribution_status="INITIATED" if request.auto_distribute else "PENDING",
    )


async def sign_report(
    db: AsyncSession, *, report_id: int, request: rpa_schemas.SignatureCreate, user_id: int
) -> rpa_schemas.SignResponse:
    report = await rpa_crud.generated_report.get_or_404(db, report_id)
    signature = _add_signature(db, report.id, user_id, request)
    await db.commit()
    await db.refresh(signature)
    return rpa_schemas.SignResponse(signature_id=signature.id)


async def distribute_report(
    db: AsyncSession, *, report_id: int, request: rpa_schemas.DistributeRequest, user_id: Optional[int]
) -> rpa_schemas.DistributeResponse:
    report = await rpa_crud.generated_report.get_or_404(db, report_id)
    if report.status != rpa_models.GeneratedReportStatus.RELEASED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Only released reports can be distributed")
    for channel in request.channels:
        db.add(rpa_models.ReportDistribution(
            report_id=report.id, channel=channel, recipients=request.recipients,
            distribution_metadata=request.metadata,
        ))
        logger.info("Report %s queued for %s distribution to %d recipient(s)",
                    report.report_no, channel.value, len(request.recipients))
    rpa_crud.report_activity.log(
        db, report_id=report.id, action=rpa_models.ReportAction.DISTRIBUTED, user_id=user_id,
        details={"channels": [c.value for c in request.channels], "recipient_count": len(request.recipients)},
    )
    await db.commit()
    return rpa_schemas.DistributeResponse(report_id=report.id, channels=request.channels)


# =============================================================================
# 6. 조회 / 다운로드 / 검증
# =============================================================================
async def get_status(db: AsyncSession, *, report_id: int) -> rpa_schemas.ReportStatusResponse:
    report = await rpa_crud.generated_report.get_or_404(db, report_id)
    return rpa_schemas.ReportStatusResponse(
        report_id=report.id, report_no=report.report_no, version=report.version, status=report.status,
        format=report.format, generated_at=report.generated_at, released_at=report.released_at,
        file_size=report.file_size, checksum=report.checksum,
    )


async def get_preview_file(db: AsyncSession, *, report_id: int) -> Tuple[bytes, str, rpa_models.GeneratedReport]:
    report = await rpa_crud.generated_report.get(db, report_id)
    if not report or not report.file_url:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found or not yet generated")
    if report.status not in (rpa_models.GeneratedReportStatus.PREVIEW, rpa_models.GeneratedReportStatus.RELEASED):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Report is not available for preview")
    content = await read_report_file(report)
    return content, MIME_TYPES[report.format], report


async def download_report(
    db: AsyncSession,
    *,
    report_id: int,
    user_id: Optional[int],
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Tuple[bytes, str, str, rpa_models.GeneratedReport]:
    """(파일 내용, 파일명, MIME 타입, 성적서)를 반환합니다."""
    report = await rpa_crud.generated_report.get_or_404(db, report_id)
    if report.status != rpa_models.GeneratedReportStatus.RELEASED or not report.file_url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Report is not available for download")

    content = await read_report_file(report)
    if not report.checksum or not verify_checksum(content, report.checksum):
        logger.error("Checksum mismatch for report %s v%s", report.report_no, report.version)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Report file integrity check failed")

    rpa_crud.report_activity.log(
        db, report_id=report.id, action=rpa_models.ReportAction.DOWNLOADED, user_id=user_id,
        details={"ip_address": ip_address, "user_agent": user_agent},
    )
    await db.commit()
    await db.refresh(report)
    filename = f"{report.report_no}_v{report.version}.{EXTENSIONS[report.format]}"
    return content, filename, MIME_TYPES[report.format], report


async def verify_report(db: AsyncSession, *, code: str) -> rpa_schemas.VerificationResponse:
    verification = await rpa_crud.report_verification.get_by_code(db, code=code)
    if not verification:
        return rpa_schemas.VerificationResponse(valid=False)
    versions = await rpa_crud.generated_report.get_versions(db, report_no=verification.report_no)
    report = next((r for r in versions if r.version == verification.version), None)
    return rpa_schemas.VerificationResponse(
        valid=True,
        report_no=verification.report_no,
        version=verification.version,
        checksum=verification.checksum,
        status=report.status if report else None,
        released_at=report.released_at if report else None,
    )


# =============================================================================
# 7. 템플릿
# =============================================================================
async def create_template(db: AsyncSession, *, obj_in: rpa_schemas.TemplateCreate) -> rpa_models.ReportTemplate:
    try:
        for source in (obj_in.header_template, obj_in.body_template, obj_in.footer_template):
            template_engine.validate(source)
    except TemplateSyntaxError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid template syntax: {e}")
    return await rpa_crud.report_template.create(db, obj_in=obj_in)
