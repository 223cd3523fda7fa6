# app/core/database.py

"""
애플리케이션의 데이터베이스 연결 및 세션 관리를 담당하는 모듈입니다.

- SQLModel의 비동기 엔진을 설정합니다.
- 요청 단위 세션 제너레이터와 ARQ 태스크용 세션 컨텍스트를 제공합니다.
- 개발 환경에서 테이블을 생성하는 함수를 포함합니다 (운영은 Alembic 사용).
"""

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import configure_mappers, sessionmaker

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings

# 모든 SQLModel 클래스가 SQLModel.metadata에 등록되도록 도메인 모델을 임포트합니다.
# (관계 문자열 참조를 configure_mappers()가 해석하려면 런타임 임포트가 필요합니다.)
from app.domains import models as _all_models  # noqa: F401

logger = logging.getLogger(__name__)


def _engine_options() -> dict:
    options = {"echo": settings.DEBUG_MODE, "future": True}
    # SQLite(aiosqlite)는 커넥션 풀 크기 옵션을 지원하지 않습니다.
    if not settings.is_sqlite:
        options.update(
            pool_recycle=3600,  # 1시간마다 연결 재활용
            pool_size=10,
            max_overflow=20,
        )
    return options


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL.get_secret_value(),
    **_engine_options(),
)

# 비동기 세션을 생성하는 '세션 공장'
AsyncSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

metadata = SQLModel.metadata

_mappers_configured = False


# =============================================================================
# 데이터베이스 초기화 및 테이블 생성 함수
# =============================================================================
async def create_db_and_tables() -> None:
    """
    데이터베이스 테이블을 생성합니다. 기존 테이블은 삭제하지 않습니다.
    """
    global _mappers_configured
    if not _mappers_configured:
        configure_mappers()
        _mappers_configured = True

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables created (or already present).")


# =============================================================================
# 비동기 데이터베이스 세션 의존성 주입
# =============================================================================
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI 의존성 주입을 위한 비동기 데이터베이스 세션 제너레이터입니다.
    요청마다 새로운 세션을 생성하고, 요청 처리 후 세션을 자동으로 닫습니다.
    """
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    ARQ Task 등 요청 밖의 비동기 컨텍스트에서 사용할 독립 세션을 제공합니다.
    정상 종료 시 커밋, 예외 발생 시 롤백 후 예외를 다시 발생시킵니다.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
