# tests/test_main.py

"""
FastAPI 애플리케이션의 메인 엔드포인트에 대한 통합 테스트를 정의하는 모듈입니다.

- 애플리케이션의 루트 경로 (`/`) 응답을 테스트합니다.
- 데이터베이스 연결 헬스 체크 엔드포인트 (`/health-check`)를 테스트합니다.
"""

import asyncio

import pytest
from httpx import AsyncClient

from app.core import tasks as core_tasks
from app.main import ArqWorkerSettings


@pytest.mark.asyncio
async def test_read_root(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to QLMTS API. Visit /docs for interactive API documentation."}


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """
    헬스 체크 엔드포인트 (`GET /health-check`)가 데이터베이스 연결 상태를 올바르게 반환하는지 테스트합니다.
    """
    response = await client.get("/health-check")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database_connection": "successful"}


@pytest.mark.asyncio
async def test_protected_endpoint_requires_token(client: AsyncClient):
    response = await client.get("/api/v1/sup/suppliers")
    assert response.status_code == 401


def test_worker_settings_register_tasks():
    names = {f.__name__ for f in ArqWorkerSettings.functions}
    assert "health_check_database_task" in names
    assert "process_report_generation_task" in names
    assert ArqWorkerSettings.cron_jobs[0].name == "daily_db_health_check"


@pytest.mark.asyncio
async def test_health_check_task_reports_success():
    result = await core_tasks.health_check_database_task({})
    assert result["status"] == "success"


@pytest.mark.asyncio
async def test_tests_run_on_session_event_loop(session_event_loop):
    # 세션 범위 엔진/테이블 픽스처와 같은 루프에서 테스트가 실행되어야 합니다.
    assert asyncio.get_running_loop() is session_event_loop
