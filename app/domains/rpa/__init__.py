# app/domains/rpa/__init__.py

"""
FastAPI 애플리케이션의 'rpa' 도메인 패키지입니다.

고객/시료 데이터를 Jinja2 템플릿으로 병합하여 PDF/DOCX/XLSX 성적서를 자동 생성합니다.
성적서 번호와 버전 채번, SHA-256 체크섬, QR 검증 코드, 서명, 재발행, 배포를 다룹니다.

주요 서브모듈:
- `models.py`: rpa_* 테이블 SQLModel 정의와 Enum.
- `engine.py`: Jinja2 템플릿 엔진 (필터, 전역 함수, 부분 템플릿).
- `generators.py`: reportlab/python-docx/openpyxl 문서 생성, 체크섬, QR 코드.
- `services.py`: 생성/발행/배포/검증 흐름.
- `tasks.py`: arq 파일 생성 작업.
- `routers.py`: 인증 API 와 공개 검증 API.
"""

__title__ = "QLMTS Report Automation Domain"
__version__ = "0.1.0"
__all__ = []
