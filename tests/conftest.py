# tests/conftest.py

import asyncio
import os
import tempfile
from typing import AsyncGenerator, Callable, Awaitable, List, Tuple
from contextlib import asynccontextmanager
from datetime import date, datetime, UTC

# --- 테스트 환경 변수 (앱 임포트 전에 설정) ---
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test_qlmts.db")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-qlmts")
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="qlmts-uploads-"))

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402

from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

# app.main을 임포트하여 FastAPI 앱 인스턴스에 접근합니다.
from app.main import app as main_app  # noqa: E402
from app.core import dependencies as deps  # noqa: E402
from app.core.database import get_session  # noqa: E402
from app.core.security import get_password_hash  # noqa: E402

# SQLModel.metadata 가 모든 테이블을 인식하도록 모델 레지스트리를 임포트합니다.
from app.domains import models as all_models  # noqa: E402, F401
from app.domains.usr import models as usr_models  # noqa: E402
from app.domains.sup import models as sup_models  # noqa: E402
from app.domains.mat import models as mat_models  # noqa: E402
from app.domains.lims import models as lims_models  # noqa: E402
from app.domains.lims.crud import compute_verdict  # noqa: E402
from app.domains.crm import models as crm_models  # noqa: E402


# --- 테스트용 데이터베이스 설정 ---
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    future=True,
    poolclass=NullPool,     # 각 연결이 독립적으로 사용되고 바로 닫히도록 함
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class FakeQueue:
    """ARQ 풀 대신 enqueue_job 호출을 기록합니다."""

    def __init__(self):
        self.jobs: List[Tuple[str, tuple]] = []

    async def enqueue_job(self, function: str, *args, **kwargs):
        self.jobs.append((function, args))
        return None


# --- 데이터베이스 픽스처 ---
@pytest_asyncio.fixture(scope="session")
async def session_event_loop():
    """세션 픽스처(엔진, 테이블)가 사용하는 이벤트 루프."""
    return asyncio.get_running_loop()


@pytest_asyncio.fixture(scope="session", autouse=True)
async def setup_database():
    """
    테스트 세션 시작 시 모든 테이블을 삭제하고 재생성합니다.
    테스트 종료 시 다시 테이블을 삭제합니다.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    각 테스트 함수마다 트랜잭션을 시작하고, 테스트 완료 후 롤백하여
    테스트 간의 격리를 보장하는 비동기 데이터베이스 세션을 제공합니다.
    """
    connection = await test_engine.connect()
    transaction = await connection.begin()
    session = TestingSessionLocal(bind=connection)

    try:
        yield session
    finally:
        await session.close()
        if transaction.is_active:
            await transaction.rollback()
        await connection.close()


@pytest_asyncio.fixture(scope="function")
def fake_queue() -> FakeQueue:
    return FakeQueue()


@pytest_asyncio.fixture(scope="function")
def upload_dir(tmp_path, monkeypatch):
    """생성 파일을 테스트별 임시 디렉토리에 저장합니다."""
    from app.core.config import settings

    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


# --- 역할별 사용자 픽스처 ---
@pytest_asyncio.fixture(scope="function")
def user_factory(db_session: AsyncSession) -> Callable[..., Awaitable[usr_models.User]]:
    """역할과 속성을 지정하여 테스트 사용자를 생성하는 팩토리 함수를 반환합니다."""
    async def _create_user(
        username: str,
        password: str,
        role: usr_models.UserRole,
        is_active: bool = True,
        **kwargs,
    ) -> usr_models.User:
        user = usr_models.User(
            username=username,
            password_hash=get_password_hash(password),
            email=f"{username}@example.com",
            role=role,
            is_active=is_active,
            **kwargs,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _create_user


@pytest_asyncio.fixture(scope="function")
async def test_admin_user(user_factory: Callable) -> usr_models.User:
    return await user_factory("sysadm", "sysadmpass123", role=usr_models.UserRole.ADMIN, full_name="System Admin")


@pytest_asyncio.fixture(scope="function")
async def test_qc_user(user_factory: Callable) -> usr_models.User:
    return await user_factory("qcmgr", "qcmgrpass123", role=usr_models.UserRole.QC_MANAGER, full_name="QC Manager")


@pytest_asyncio.fixture(scope="function")
async def test_user(user_factory: Callable) -> usr_models.User:
    return await user_factory("generaluser", "userpass123", role=usr_models.UserRole.GENERAL_USER)


# --- 인증된 클라이언트 픽스처 ---
# /api/v1/usr/auth/token 로그인 API를 실제로 호출하고,
# 받은 access_token 을 Authorization 헤더에 포함시킵니다.
@pytest_asyncio.fixture(scope="function")
def authorized_client_factory(db_session: AsyncSession, fake_queue: FakeQueue):
    """특정 사용자로 로그인된 AsyncClient 를 생성하는 컨텍스트 팩토리를 반환합니다."""
    @asynccontextmanager
    async def _create_client_context(user: usr_models.User, password: str) -> AsyncGenerator[AsyncClient, None]:
        def override_get_session():
            yield db_session

        def override_get_current_user():
            return user

        original_overrides = main_app.dependency_overrides.copy()
        try:
            main_app.dependency_overrides.update({
                get_session: override_get_session,
                deps.get_db_session: override_get_session,
                deps.get_current_active_user: override_get_current_user,
                deps.get_task_queue: lambda: fake_queue,
            })

            transport = ASGITransport(app=main_app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                res = await client.post(
                    "/api/v1/usr/auth/token", data={"username": user.username, "password": password}
                )
                assert res.status_code == 200, f"Login failed for {user.username}: {res.text}"
                client.headers["Authorization"] = f"Bearer {res.json()['access_token']}"
                yield client
        finally:
            main_app.dependency_overrides = original_overrides

    return _create_client_context


@pytest_asyncio.fixture(scope="function")
async def admin_client(authorized_client_factory, test_admin_user) -> AsyncGenerator[AsyncClient, None]:
    """관리자로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_admin_user, "sysadmpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def qc_client(authorized_client_factory, test_qc_user) -> AsyncGenerator[AsyncClient, None]:
    """품질 관리자(QC_MANAGER)로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_qc_user, "qcmgrpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def authorized_client(authorized_client_factory, test_user) -> AsyncGenerator[AsyncClient, None]:
    """일반 사용자로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_user, "userpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, fake_queue: FakeQueue) -> AsyncGenerator[AsyncClient, None]:
    """인증되지 않은 클라이언트를 반환합니다."""
    def override_get_session():
        yield db_session

    original_overrides = main_app.dependency_overrides.copy()
    try:
        main_app.dependency_overrides.update({
            get_session: override_get_session,
            deps.get_db_session: override_get_session,
            deps.get_task_queue: lambda: fake_queue,
        })
        transport = ASGITransport(app=main_app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        main_app.dependency_overrides = original_overrides


# --- 도메인 데이터 픽스처 ---
@pytest_asyncio.fixture(name="test_supplier")
async def test_supplier_fixture(db_session: AsyncSession) -> sup_models.Supplier:
    supplier = sup_models.Supplier(code="SUP001", name="Steel Corp India Ltd", email="sales@steelcorp.in")
    db_session.add(supplier)
    await db_session.commit()
    await db_session.refresh(supplier)
    return supplier


@pytest_asyncio.fixture(name="test_heat")
async def test_heat_fixture(db_session: AsyncSession, test_supplier: sup_models.Supplier) -> mat_models.Heat:
    heat = mat_models.Heat(
        heat_no="HT-2024-001234",
        supplier_id=test_supplier.id,
        material_grade="ASTM A105",
        received_on=date(2024, 1, 15),
        quantity=2500,
        unit=mat_models.HeatUnit.KG,
        mtc_number="MTC-SC-2024-0456",
    )
    db_session.add(heat)
    await db_session.commit()
    await db_session.refresh(heat)
    return heat


@pytest_asyncio.fixture(name="test_customer")
async def test_customer_fixture(db_session: AsyncSession) -> crm_models.Customer:
    customer = crm_models.Customer(code="CUST001", name="Bharat Forge Ltd", address="Pune, Maharashtra")
    db_session.add(customer)
    await db_session.commit()
    await db_session.refresh(customer)
    return customer


def _completed_test(sample_id: int, category, method: str, standard: str, rows) -> lims_models.Test:
    test = lims_models.Test(
        sample_id=sample_id, category=category, method=method, standard=standard,
        status=lims_models.TestStatus.COMPLETED, completed_at=datetime.now(UTC),
    )
    test.results = [
        lims_models.TestResult(parameter=p, value=v, unit=u, min_spec=lo, max_spec=hi,
                               verdict=compute_verdict(v, lo, hi))
        for p, v, u, lo, hi in rows
    ]
    return test


@pytest_asyncio.fixture(scope="function")
def sample_factory(db_session: AsyncSession, test_heat: mat_models.Heat):
    """완료된 화학/기계 시험을 가진 시료를 생성합니다."""
    counter = {"n": 0}

    async def _create_sample(
        state: lims_models.SampleState = lims_models.SampleState.APPROVED,
        uts: float = 520,
    ) -> lims_models.Sample:
        counter["n"] += 1
        sample = lims_models.Sample(
            code=f"S-2024-{counter['n']:06d}",
            source_type=lims_models.SourceType.HEAT,
            heat_id=test_heat.id,
            requested_by="QC Manager",
            state=state,
            registered_at=datetime.now(UTC),
        )
        db_session.add(sample)
        await db_session.flush()
        db_session.add(_completed_test(sample.id, lims_models.TestCategory.CHEMICAL, "SPECTRO", "ASTM E415", [
            ("C", 0.19, "%", None, 0.35),
            ("Mn", 1.15, "%", 0.60, 1.35),
        ]))
        db_session.add(_completed_test(sample.id, lims_models.TestCategory.MECHANICAL, "TENSILE", "ASTM E8", [
            ("UTS", uts, "MPa", 485, None),
            ("YS", 275, "MPa", 250, None),
            ("Elongation", 25, "%", 22, None),
        ]))
        await db_session.commit()
        await db_session.refresh(sample)
        return sample

    return _create_sample
