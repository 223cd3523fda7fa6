import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from arq import cron
from arq.connections import create_pool, RedisSettings
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

# 핵심 설정 및 데이터베이스 모듈 임포트
from app.core.config import settings
from app.core.database import engine, get_session
from app.core.logging import setup_logging

from app import API_PREFIX

# 태스크 모듈 임포트
from app.core import tasks as core_tasks
from app.domains.rpa import tasks as rpa_tasks

# 도메인 라우터 임포트
from app.domains.usr.routers import router as usr_router
from app.domains.sup.routers import router as sup_router
from app.domains.mat.routers import router as mat_router
from app.domains.lims.routers import router as lims_router
from app.domains.crm.routers import router as crm_router
from app.domains.rpt.routers import router as rpt_router
from app.domains.rpa.routers import router as rpa_router, verify_router as rpa_verify_router

logger = logging.getLogger(__name__)

# ARQ 워커가 실행할 태스크 함수 목록
worker_functions = [
    core_tasks.health_check_database_task,
    rpa_tasks.process_report_generation_task,
]


async def _worker_startup(ctx) -> None:
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    logger.info("ARQ worker started")


# ARQ 워커 설정 클래스 (실행: arq app.main.ArqWorkerSettings)
class ArqWorkerSettings:
    redis_settings = RedisSettings(host=settings.REDIS_HOST, port=settings.REDIS_PORT)
    functions = worker_functions
    max_tries = settings.REPORT_JOB_MAX_TRIES
    on_startup = _worker_startup
    cron_jobs = [
        # 매일 00:00 데이터베이스 헬스 체크
        cron(core_tasks.health_check_database_task, name="daily_db_health_check",
             hour=0, minute=0, timeout=300, keep_result=600),
    ]


# -- 애플리케이션 수명 주기 이벤트 핸들러 --
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI 애플리케이션의 수명 주기 이벤트(로깅, ARQ Redis, 데이터베이스)를 함께 처리합니다.
    """
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    logger.info("Starting %s v%s (%s)", settings.APP_NAME, settings.APP_VERSION, settings.APP_ENV)

    # ARQ Redis 커넥션 풀 생성 및 app.state에 할당
    app.state.redis = await create_pool(ArqWorkerSettings.redis_settings)
    logger.info("ARQ Redis pool created (%s:%s)", settings.REDIS_HOST, settings.REDIS_PORT)

    yield  # 애플리케이션 실행

    logger.info("Shutting down %s", settings.APP_NAME)
    if app.state.redis:
        await app.state.redis.close()
    await engine.dispose()


# -- FastAPI 애플리케이션 인스턴스 생성 --
app = FastAPI(
    title="QLMTS API",
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs",       # Swagger UI
    redoc_url="/redoc",     # ReDoc
    lifespan=lifespan,
)

# -- CORS 미들웨어 설정 --
# FRONTEND_URL 이 설정되어 있으면 해당 출처만, 없으면 모든 출처를 허용합니다.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if settings.FRONTEND_URL else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -- 도메인 라우터 포함 --
app.include_router(usr_router, prefix=f"{API_PREFIX}/usr", tags=["User Management (사용자 관리)"])
app.include_router(sup_router, prefix=f"{API_PREFIX}/sup", tags=["Supplier Management (공급업체 관리)"])
app.include_router(mat_router, prefix=f"{API_PREFIX}/mat", tags=["Material Management (자재/히트 관리)"])
app.include_router(lims_router, prefix=f"{API_PREFIX}/lims", tags=["Laboratory Information Management (시험실 정보 관리)"])
app.include_router(crm_router, prefix=f"{API_PREFIX}/crm", tags=["Customer Management (고객 관리)"])
app.include_router(rpt_router, prefix=f"{API_PREFIX}/rpt", tags=["MTC Report Management (MTC 성적서 관리)"])
app.include_router(rpa_verify_router, prefix=f"{API_PREFIX}/rpa")
app.include_router(rpa_router, prefix=f"{API_PREFIX}/rpa", tags=["Report Automation (성적서 자동 발행)"])


# -- 루트 엔드포인트 --
@app.get("/", summary="API Root", response_description="Welcome message and documentation link.")
async def read_root():
    """
    QLMTS API의 루트 엔드포인트입니다.
    API의 시작점을 알리고 문서 링크를 제공합니다.
    """
    return {"message": "Welcome to QLMTS API. Visit /docs for interactive API documentation."}


# -- 헬스 체크 엔드포인트 --
@app.get("/health-check", summary="Health Check", response_description="Status of the application and database connection.")
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    데이터베이스 연결을 테스트하여 서비스의 정상 작동 여부를 확인합니다.
    """
    try:
        result = await session.exec(select(1))
        row = result.first()
    except Exception as e:
        logger.error("Health check failed", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Database connection error during health check: {e}"
        )
    if not row:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database health check failed: No result from test query"
        )
    return {"status": "ok", "database_connection": "successful"}
