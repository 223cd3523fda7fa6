# app/domains/sup/__init__.py

"""
FastAPI 애플리케이션의 'sup' 도메인 패키지입니다.

원자재(히트)를 공급하는 공급업체(Supplier) 정보를 관리합니다.
공급업체 코드는 대문자로 정규화되어 고유하게 유지되며,
히트 기록이 있는 공급업체는 삭제할 수 없습니다.

주요 서브모듈:
- `models.py`: sup_suppliers 테이블 SQLModel 정의.
- `schemas.py`: 요청/응답 스키마 (코드·이메일 정규화 포함).
- `crud.py`: 비동기 CRUD, 필터/정렬/페이지네이션 조회.
- `routers.py`: 공급업체 API 엔드포인트.
"""

__title__ = "QLMTS Supplier Domain"
__version__ = "0.1.0"
__all__ = []
