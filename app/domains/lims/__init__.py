# app/domains/lims/__init__.py

"""
FastAPI 애플리케이션의 'lims' 도메인 패키지입니다.

'lims' 도메인은 철강/금속 시험실의 시료(Sample)와 시험(Test),
시험 결과(TestResult), 특채(Deviation) 데이터를 관리합니다.
시료는 정해진 상태 전이 규칙(PENDING -> REGISTERED -> IN_PROGRESS -> ...)을 따르며,
시험 결과는 규격 범위에 따라 자동 판정됩니다.

주요 서브모듈:
- `models.py`: lims_* 테이블에 매핑되는 SQLModel 정의와 Enum.
- `schemas.py`: 요청 및 응답 유효성 검사용 Pydantic 모델.
- `crud.py`: 시료 채번, 상태 전이, 자동 판정을 포함한 비동기 CRUD 로직.
- `routers.py`: 시료/시험/결과/특채 API 엔드포인트.
"""

__title__ = "QLMTS LIMS Domain"
__description__ = "Manages samples, tests, results and deviations."
__version__ = "0.1.0"
__all__ = []
