# flake8: noqa
# scripts/seed.py

"""
개발/데모용 기초 데이터를 생성합니다. 이미 존재하는 레코드는 건너뜁니다.

실행: python -m scripts.seed --password <초기 비밀번호>
"""

import asyncio
import logging
from datetime import date, datetime, UTC

import typer
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.database import AsyncSessionLocal, create_db_and_tables
from app.core.logging import setup_logging
from app.core.security import get_password_hash
from app.domains.usr.models import User, UserRole
from app.domains.sup.models import Supplier
from app.domains.mat.models import Heat, HeatUnit
from app.domains.lims.crud import compute_verdict
from app.domains.lims.models import (
    Sample, SampleState, SourceType, Test, TestCategory, TestStatus, TestResult,
)
from app.domains.crm.models import Customer
from app.domains.rpa.engine import DEFAULT_TEMPLATE
from app.domains.rpa.models import ReportTemplate, ReportType

logger = logging.getLogger("scripts.seed")

cli = typer.Typer()

USERS = [
    ("admin", "admin@qlmts.local", "System Administrator", UserRole.ADMIN),
    ("qcmanager", "qc@qlmts.local", "QC Manager", UserRole.QC_MANAGER),
    ("labtech", "lab@qlmts.local", "Lab Technician", UserRole.LAB_TECH),
]

SUPPLIERS = [
    dict(code="SUP001", name="Steel Corp India Ltd", contact_person="Rajesh Kumar",
         email="rajesh@steelcorp.in", phone="+91-20-12345678", address="Pune, Maharashtra"),
    dict(code="SUP002", name="Metal Works Pvt Ltd", contact_person="Anita Desai",
         email="anita@metalworks.in", phone="+91-22-87654321", address="Mumbai, Maharashtra"),
]

CHEMICAL_RESULTS = [
    ("C", 0.19, "%", None, 0.35),
    ("Mn", 1.15, "%", 0.60, 1.35),
    ("Si", 0.35, "%", 0.10, 0.35),
]

MECHANICAL_RESULTS = [
    ("UTS", 520, "MPa", 485, None),
    ("YS", 275, "MPa", 250, None),
    ("Elongation", 25, "%", 22, None),
]


async def _first(db: AsyncSession, statement):
    return (await db.execute(statement)).scalars().first()


async def seed_users(db: AsyncSession, password: str) -> User:
    admin = None
    for username, email, full_name, role in USERS:
        db_user = await _first(db, select(User).where(User.username == username))
        if not db_user:
            db_user = User(username=username, email=email, full_name=full_name, role=role,
                           password_hash=get_password_hash(password))
            db.add(db_user)
            await db.flush()
            logger.info("Created user %s (%s)", username, role.name)
        if role == UserRole.ADMIN:
            admin = db_user
    return admin


async def seed_suppliers(db: AsyncSession) -> dict:
    suppliers = {}
    for data in SUPPLIERS:
        db_supplier = await _first(db, select(Supplier).where(Supplier.code == data["code"]))
        if not db_supplier:
            db_supplier = Supplier(**data)
            db.add(db_supplier)
            await db.flush()
            logger.info("Created supplier %s", data["code"])
        suppliers[data["code"]] = db_supplier
    return suppliers


async def seed_heats(db: AsyncSession, suppliers: dict) -> Heat:
    heats = [
        dict(heat_no="HT-2024-001234", supplier_id=suppliers["SUP001"].id, material_grade="ASTM A105",
             received_on=date(2024, 1, 15), quantity=2500, unit=HeatUnit.KG, po_number="PO-2024-0001",
             grn_number="GRN-2024-0001", mtc_number="MTC-SC-2024-0456"),
        dict(heat_no="HT-2024-001235", supplier_id=suppliers["SUP002"].id, material_grade="ASTM A182 F316L",
             received_on=date(2024, 1, 20), quantity=1800, unit=HeatUnit.KG, po_number="PO-2024-0002",
             grn_number="GRN-2024-0002", mtc_number="MTC-MW-2024-0789"),
    ]
    first = None
    for data in heats:
        db_heat = await _first(db, select(Heat).where(Heat.heat_no == data["heat_no"]))
        if not db_heat:
            db_heat = Heat(**data)
            db.add(db_heat)
            await db.flush()
            logger.info("Created heat %s", data["heat_no"])
        first = first or db_heat
    return first


def _add_test(db: AsyncSession, sample: Sample, category, method, standard, rows) -> None:
    test = Test(sample_id=sample.id, category=category, method=method, standard=standard,
                status=TestStatus.COMPLETED, completed_at=datetime.now(UTC))
    test.results = [
        TestResult(parameter=parameter, value=value, unit=unit, min_spec=min_spec, max_spec=max_spec,
                   verdict=compute_verdict(value, min_spec, max_spec))
        for parameter, value, unit, min_spec, max_spec in rows
    ]
    db.add(test)


async def seed_sample(db: AsyncSession, heat: Heat, admin: User) -> None:
    code = "S-2024-000001"
    if await _first(db, select(Sample).where(Sample.code == code)):
        return
    sample = Sample(code=code, source_type=SourceType.HEAT, heat_id=heat.id, requested_by="QC Manager",
                    state=SampleState.REGISTERED, registered_at=datetime.now(UTC), created_by_id=admin.id)
    db.add(sample)
    await db.flush()
    _add_test(db, sample, TestCategory.CHEMICAL, "SPECTRO", "ASTM E415", CHEMICAL_RESULTS)
    _add_test(db, sample, TestCategory.MECHANICAL, "TENSILE", "ASTM E8", MECHANICAL_RESULTS)
    logger.info("Created sample %s with chemical and mechanical tests", code)


async def seed_customer_and_template(db: AsyncSession) -> None:
    if not await _first(db, select(Customer).where(Customer.code == "DEFAULT")):
        db.add(Customer(code="DEFAULT", name="Default Customer", address="Pune, Maharashtra"))
        logger.info("Created default customer")
    name = DEFAULT_TEMPLATE["name"]
    if not await _first(db, select(ReportTemplate).where(ReportTemplate.name == name)):
        db.add(ReportTemplate(
            name=name,
            report_type=ReportType.MTC,
            header_template=DEFAULT_TEMPLATE["header_template"],
            body_template=DEFAULT_TEMPLATE["body_template"],
            footer_template=DEFAULT_TEMPLATE["footer_template"],
            table_config=DEFAULT_TEMPLATE["table_config"],
            page_config=DEFAULT_TEMPLATE["page_config"],
            is_default=True,
        ))
        logger.info("Created default MTC template")


async def seed(password: str, create_tables: bool) -> None:
    if create_tables:
        await create_db_and_tables()
    async with AsyncSessionLocal() as db:
        admin = await seed_users(db, password)
        suppliers = await seed_suppliers(db)
        heat = await seed_heats(db, suppliers)
        await seed_sample(db, heat, admin)
        await seed_customer_and_template(db)
        await db.commit()
    logger.info("Seed completed")


@cli.command()
def main(
    password: str = typer.Option(
        ..., '--password', '-p',
        prompt="시드 사용자 공통 비밀번호를 입력하세요",
        hide_input=True,
        help="admin/qcmanager/labtech 계정의 초기 비밀번호 (최소 8자)"
    ),
    create_tables: bool = typer.Option(
        False, '--create-tables',
        help="시드 전에 테이블을 생성합니다 (개발용, 운영은 Alembic 사용)"
    ),
):
    """
    QLMTS 개발용 기초 데이터(사용자, 공급업체, 히트, 시료, 고객, 기본 템플릿)를 생성합니다.
    """
    if len(password) < 8:
        typer.echo("오류: 비밀번호는 최소 8자 이상이어야 합니다.")
        raise typer.Abort()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    asyncio.run(seed(password, create_tables))


if __name__ == "__main__":
    cli()
