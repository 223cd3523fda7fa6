# tests/__init__.py

"""
QLMTS 백엔드 테스트 스위트 패키지입니다.

- `conftest.py`: 테스트 DB(트랜잭션 롤백 격리), 역할별 인증 클라이언트, 시료/히트/고객 픽스처
- `domains/`: 도메인별 통합 테스트 (usr, sup, mat, lims, crm, rpt, rpa)
"""

__title__ = "QLMTS API Tests"
__all__ = []
