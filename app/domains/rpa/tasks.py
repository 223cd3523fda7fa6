# app/domains/rpa/tasks.py

"""
'rpa' 도메인의 ARQ 백그라운드 작업입니다.
"""

import logging
from typing import Optional

from arq import Retry

from app.core.config import settings
from app.core.database import get_async_session_context
from . import services

logger = logging.getLogger(__name__)


async def process_report_generation_task(
    ctx, report_id: int, template_id: Optional[int], auto_release: bool, user_id: Optional[int]
):
    """
    성적서 파일을 생성합니다.
    마지막 시도 전 실패는 지수 백오프로 재시도하고, 마지막 시도에서 실패하면 FAILED 로 기록합니다.
    """
    job_try = ctx.get("job_try", 1)
    logger.info("Report generation job started (report_id=%s, try=%s)", report_id, job_try)
    try:
        async with get_async_session_context() as db:
            report = await services.run_report_generation(
                db, report_id=report_id, template_id=template_id, auto_release=auto_release, user_id=user_id,
            )
    except Exception as e:
        if job_try < settings.REPORT_JOB_MAX_TRIES:
            defer = settings.REPORT_JOB_BACKOFF_SECONDS * 2 ** (job_try - 1)
            logger.warning("Report generation failed (report_id=%s, try=%s), retrying in %ss: %s",
                           report_id, job_try, defer, e)
            raise Retry(defer=defer) from e
        logger.error("Report generation failed (report_id=%s)", report_id, exc_info=True)
        async with get_async_session_context() as db:
            await services.mark_report_failed(db, report_id=report_id, error=str(e), user_id=user_id)
        raise

    logger.info("Report generation job finished (report_id=%s, status=%s)", report_id, report.status.value)
    return {"report_id": report.id, "status": report.status.value, "checksum": report.checksum}
