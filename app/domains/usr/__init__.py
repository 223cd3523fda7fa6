# app/domains/usr/__init__.py

"""
FastAPI 애플리케이션의 'usr' 도메인 패키지입니다.

실험실 사용자 계정과 역할(ADMIN, QC_MANAGER, LAB_TECH, GENERAL_USER),
그리고 JWT 로그인 엔드포인트를 관리합니다.

주요 서브모듈:
- `models.py`: 사용자 테이블 SQLModel 정의 및 UserRole Enum.
- `schemas.py`: 사용자/토큰 요청·응답 스키마.
- `crud.py`: 사용자 CRUD 및 인증 로직.
- `routers.py`: 인증 및 사용자 관리 API 엔드포인트.
"""

__title__ = "QLMTS User Domain"
__version__ = "0.1.0"
__all__ = []
