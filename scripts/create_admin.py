# flake8: noqa
# scripts/create_admin.py

"""
QLMTS 관리자 계정 관리 CLI

실행:
    python -m scripts.create_admin create -e admin@plant.local -u admin
    python -m scripts.create_admin set-password -u admin
"""

import asyncio
from datetime import datetime, UTC

import typer
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import AsyncSessionLocal, engine
from app.core.security import get_password_hash
from app.domains.usr import crud as usr_crud
from app.domains.usr import schemas as usr_schemas
from app.domains.usr.models import UserRole

cli = typer.Typer()


async def create_admin_user(db: AsyncSession, user_in: usr_schemas.UserCreate) -> bool:
    if await usr_crud.user.get_by_email(db, email=user_in.email):
        typer.echo(f"오류: 이미 존재하는 이메일입니다: {user_in.email}")
        return False
    if await usr_crud.user.get_by_username(db, username=user_in.username):
        typer.echo(f"오류: 이미 존재하는 사용자명입니다: {user_in.username}")
        return False
    await usr_crud.user.create(db, obj_in=user_in)
    typer.echo(f"관리자 계정이 생성되었습니다: {user_in.email} ({user_in.username})")
    return True


async def set_user_password(db: AsyncSession, username: str, password: str) -> bool:
    db_user = await usr_crud.user.get_by_username(db, username=username)
    if not db_user:
        typer.echo(f"오류: 사용자를 찾을 수 없습니다: {username}")
        return False
    db_user.password_hash = get_password_hash(password)
    db_user.updated_at = datetime.now(UTC)
    db.add(db_user)
    await db.commit()
    typer.echo(f"비밀번호가 변경되었습니다: {username}")
    return True


def _run(coro_factory) -> bool:
    async def runner():
        try:
            async with AsyncSessionLocal() as db:
                return await coro_factory(db)
        finally:
            await engine.dispose()

    return asyncio.run(runner())


def _check_password(password: str) -> None:
    if len(password) < 8:
        typer.echo("오류: 비밀번호는 최소 8자 이상이어야 합니다.")
        raise typer.Abort()


@cli.command("create")
def create(
    email: str = typer.Option(..., "--email", "-e", prompt="관리자 이메일", help="관리자 계정 이메일"),
    username: str = typer.Option(..., "--username", "-u", prompt="관리자 사용자명", help="로그인 ID"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt="관리자 비밀번호", hide_input=True, confirmation_prompt=True,
        help="최소 8자",
    ),
    full_name: str = typer.Option("Admin", "--name", "-n", help="표시 이름"),
):
    """ADMIN 역할의 사용자를 생성합니다."""
    _check_password(password)
    user_in = usr_schemas.UserCreate(
        email=email, username=username, password=password, full_name=full_name, role=UserRole.ADMIN,
    )
    if not _run(lambda db: create_admin_user(db, user_in)):
        raise typer.Exit(code=1)


@cli.command("set-password")
def set_password(
    username: str = typer.Option("admin", "--username", "-u", help="비밀번호를 바꿀 사용자명"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt="새 비밀번호", hide_input=True, confirmation_prompt=True,
    ),
):
    """기존 사용자의 비밀번호를 재설정합니다."""
    _check_password(password)
    if not _run(lambda db: set_user_password(db, username, password)):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    cli()
