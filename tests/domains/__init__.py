# tests/domains/__init__.py

"""
도메인별 테스트 모듈 패키지입니다.

- `test_usr.py`: 인증 및 사용자 관리
- `test_sup.py`: 공급업체
- `test_mat.py`: 히트(원자재 로트)
- `test_lims.py`: 시료, 시험, 결과 판정, 특채
- `test_crm.py`: 고객 및 PO
- `test_rpt.py`: MTC 성적서
- `test_rpa.py`, `test_rpa_engine.py`: 성적서 자동 발행, 템플릿 엔진, 파일 생성기
"""

__all__ = []
