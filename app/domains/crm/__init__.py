# app/domains/crm/__init__.py

"""
FastAPI 애플리케이션의 'crm' 도메인 패키지입니다.

성적서를 발행받는 고객사(Customer)와 고객 구매 주문(PurchaseOrder)을 관리합니다.
자동 성적서(rpa) 생성 시 고객/주문 정보가 병합 데이터로 사용됩니다.
"""

__title__ = "QLMTS Customer Domain"
__version__ = "0.1.0"
__all__ = []
