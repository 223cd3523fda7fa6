# app/domains/rpt/__init__.py

"""
FastAPI 애플리케이션의 'rpt' (Report) 도메인 패키지입니다.

시료 단위의 MTC(Mill Test Certificate) 성적서를 관리합니다.
성적서는 DRAFT -> REVIEW -> RELEASED 순으로 진행되며, 수정할 때마다 버전이 올라갑니다.
발행 시 시료의 모든 시험이 완료되어 있어야 하고, PDF 다운로드는 reportlab 으로 렌더링합니다.
"""

__title__ = "QLMTS MTC Report Domain"
__version__ = "0.1.0"
__all__ = []
