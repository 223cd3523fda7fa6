# app/domains/mat/__init__.py

"""
FastAPI 애플리케이션의 'mat' 도메인 패키지입니다.

공급업체로부터 입고된 원자재 로트(히트, Heat)를 관리합니다.
히트 번호는 대문자로 정규화되어 고유하게 유지되며,
시료(Sample)가 등록된 히트는 삭제할 수 없습니다.
"""

__title__ = "QLMTS Material Domain"
__version__ = "0.1.0"
__all__ = []
