# app/domains/models/__init__.py

"""
이 파일은 모든 도메인의 SQLModel 모델들을 한 곳에서 중앙 관리하여,
다른 모듈에서 쉽게 임포트할 수 있도록 하는 역할을 합니다.
SQLModel.metadata가 모든 테이블을 인식하도록 보장합니다.
(데이터베이스 모듈과 Alembic env.py 가 이 패키지를 임포트합니다.)
"""

# usr
from app.domains.usr.models import User, UserRole

# sup
from app.domains.sup.models import Supplier

# mat
from app.domains.mat.models import Heat, HeatUnit

# lims
from app.domains.lims.models import Sample, Test, TestResult, Deviation

# crm
from app.domains.crm.models import Customer, PurchaseOrder

# rpt
from app.domains.rpt.models import Report, ReportStatus

# rpa
from app.domains.rpa.models import (
    ReportTemplate, GeneratedReport, ReportVerification, ReportSignature,
    ReportActivity, ReportDistribution,
)

__all__ = [
    # usr
    "User", "UserRole",
    # sup
    "Supplier",
    # mat
    "Heat", "HeatUnit",
    # lims
    "Sample", "Test", "TestResult", "Deviation",
    # crm
    "Customer", "PurchaseOrder",
    # rpt
    "Report", "ReportStatus",
    # rpa
    "ReportTemplate", "GeneratedReport", "ReportVerification", "ReportSignature",
    "ReportActivity", "ReportDistribution",
]
