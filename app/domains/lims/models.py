# app/domains/lims/models.py

"""
'lims' 도메인 (실험실 정보 관리 시스템)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- lims_samples: 시료 (히트/제품/배치 단위)
- lims_tests: 시료별 시험 (화학/기계/경도/충격 등)
- lims_test_results: 시험 결과 (파라미터별 측정값과 판정)
- lims_deviations: 특채(Deviation) 기록
"""

from typing import Optional, List, TYPE_CHECKING
from datetime import datetime, UTC
from enum import Enum

from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

if TYPE_CHECKING:
    from app.domains.mat.models import Heat


# =============================================================================
# Enum 정의
# =============================================================================
class SourceType(str, Enum):
    HEAT = "HEAT"
    PRODUCT = "PRODUCT"
    BATCH = "BATCH"


class Priority(str, Enum):
    HIGH = "HIGH"
    NORMAL = "NORMAL"
    LOW = "LOW"


class SampleState(str, Enum):
    PENDING = "PENDING"
    REGISTERED = "REGISTERED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    APPROVED = "APPROVED"
    RELEASED = "RELEASED"
    REJECTED = "REJECTED"


class TestCategory(str, Enum):
    CHEMICAL = "CHEMICAL"
    MECHANICAL = "MECHANICAL"
    HARDNESS = "HARDNESS"
    IMPACT = "IMPACT"
    NDT = "NDT"
    HT = "HT"


class TestStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Verdict(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    PASS_WITH_DEVIATION = "PASS_WITH_DEVIATION"


def _created_at():
    return Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )


def _updated_at():
    return Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )


# =============================================================================
# 1. lims_samples 테이블 모델
# =============================================================================
class SampleBase(SQLModel):
    source_type: SourceType = Field(default=SourceType.HEAT, description="시료 출처 유형")
    heat_id: Optional[int] = Field(default=None, foreign_key="mat_heats.id", index=True, description="히트 ID")
    batch_no: Optional[str] = Field(default=None, max_length=50, description="배치 번호")
    priority: Priority = Field(default=Priority.NORMAL, description="우선순위")
    requested_by: str = Field(max_length=100, description="의뢰자")
    notes: Optional[str] = Field(default=None, max_length=500, description="비고")


class Sample(SampleBase, table=True):
    __tablename__ = "lims_samples"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(max_length=20, sa_column_kwargs={"unique": True}, index=True, description="시료 코드 S-YYYY-NNNNNN")
    state: SampleState = Field(default=SampleState.PENDING, index=True, description="시료 상태")
    registered_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    completed_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    created_by_id: Optional[int] = Field(default=None, foreign_key="usr_users.id", description="등록자")
    created_at: Optional[datetime] = _created_at()
    updated_at: Optional[datetime] = _updated_at()

    heat: Optional["Heat"] = Relationship(back_populates="samples")
    tests: List["Test"] = Relationship(
        back_populates="sample",
        sa_relationship_kwargs={"order_by": "Test.id"},
    )
    deviations: List["Deviation"] = Relationship(
        back_populates="sample",
        sa_relationship_kwargs={"order_by": "Deviation.id"},
    )


# =============================================================================
# 2. lims_tests 테이블 모델
# =============================================================================
class TestBase(SQLModel):
    category: TestCategory = Field(description="시험 분류")
    method: str = Field(max_length=100, description="시험 방법 (예: SPECTRO, TENSILE)")
    standard: Optional[str] = Field(default=None, max_length=100, description="적용 규격 (예: ASTM E8)")


class Test(TestBase, table=True):
    __tablename__ = "lims_tests"
    # pytest 수집 대상에서 제외
    __test__ = False

    id: Optional[int] = Field(default=None, primary_key=True)
    sample_id: int = Field(foreign_key="lims_samples.id", index=True)
    status: TestStatus = Field(default=TestStatus.PENDING, description="시험 상태")
    completed_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    created_at: Optional[datetime] = _created_at()
    updated_at: Optional[datetime] = _updated_at()

    sample: Optional[Sample] = Relationship(back_populates="tests")
    results: List["TestResult"] = Relationship(
        back_populates="test",
        sa_relationship_kwargs={"order_by": "TestResult.id", "cascade": "all, delete-orphan"},
    )


# =============================================================================
# 3. lims_test_results 테이블 모델
# =============================================================================
class TestResultBase(SQLModel):
    parameter: str = Field(max_length=50, description="파라미터 (예: C, Mn, UTS)")
    value: float = Field(description="측정값")
    unit: Optional[str] = Field(default=None, max_length=20, description="단위")
    min_spec: Optional[float] = Field(default=None, description="규격 하한")
    max_spec: Optional[float] = Field(default=None, description="규격 상한")
    specimen_id: Optional[str] = Field(default=None, max_length=50, description="시편 ID / 측정 위치")
    test_temperature: Optional[float] = Field(default=None, description="시험 온도 (충격 시험)")


class TestResult(TestResultBase, table=True):
    __tablename__ = "lims_test_results"
    __test__ = False

    id: Optional[int] = Field(default=None, primary_key=True)
    test_id: int = Field(foreign_key="lims_tests.id", index=True)
    verdict: Verdict = Field(description="판정")
    created_at: Optional[datetime] = _created_at()

    test: Optional[Test] = Relationship(back_populates="results")


# =============================================================================
# 4. lims_deviations 테이블 모델
# =============================================================================
class DeviationBase(SQLModel):
    parameter: str = Field(max_length=50)
    original_value: str = Field(max_length=100, description="원 규격/측정값")
    deviated_value: str = Field(max_length=100, description="특채 허용값")
    concession_ref: Optional[str] = Field(default=None, max_length=50, description="특채 승인 번호")
    approved_by: Optional[str] = Field(default=None, max_length=100, description="승인자")


class Deviation(DeviationBase, table=True):
    __tablename__ = "lims_deviations"

    id: Optional[int] = Field(default=None, primary_key=True)
    sample_id: int = Field(foreign_key="lims_samples.id", index=True)
    created_at: Optional[datetime] = _created_at()

    sample: Optional[Sample] = Relationship(back_populates="deviations")
