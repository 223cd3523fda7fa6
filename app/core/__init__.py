# app/core/__init__.py

"""
FastAPI 애플리케이션의 핵심 구성 요소 패키지입니다.

- `config.py`: 애플리케이션 설정 및 환경 변수 관리 (Pydantic Settings).
- `database.py`: 비동기 엔진, 세션 관리 (SQLModel 및 AsyncSQLAlchemy).
- `crud_base.py`: 도메인 공통 CRUD/페이지네이션 기본 클래스.
- `security.py`: 비밀번호 해싱, JWT 발급/검증, 역할 기반 권한 확인.
- `dependencies.py`: FastAPI 의존성 주입 함수 모음.
- `logging.py`: 표준 logging 설정 (JSON/텍스트 포맷).
- `tasks.py`: ARQ 워커가 실행하는 공통 태스크.
"""

__title__ = "QLMTS Core"
__version__ = "0.1.0"
__all__ = []
