# app/__init__.py

"""
QLMTS FastAPI 애플리케이션의 메인 패키지입니다.

품질 실험실(철강/금속) 업무를 위한 백엔드로,
공급업체, 히트(원자재 로트), 시료, 시험, 성적서(MTC) 및 보고서 자동화 기능을 제공합니다.

- core 서브패키지: 설정, 데이터베이스 연결, 보안, 로깅 등 공통 구성 요소
- domains 서브패키지: 각 비즈니스 도메인 (usr, sup, mat, lims, crm, rpt, rpa)
"""

APP_NAME = "QLMTS FastAPI API"
APP_VERSION = "0.1.0"
API_PREFIX = "/api/v1"  # API 라우트의 공통 접두사 (main.py에서 적용)

__version__ = APP_VERSION
__title__ = APP_NAME
__description__ = "Quality Lab Management & Test System (QLMTS) API backend."
__license__ = "MIT"
__all__ = []
