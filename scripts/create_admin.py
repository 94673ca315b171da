# scripts/create_admin.py

import asyncio
import typer
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import AsyncSessionLocal, create_db_and_tables
from app.domains.usr import crud as usr_crud
from app.domains.usr import schemas as usr_schemas
from app.domains.usr.models import UserRole

cli = typer.Typer()


async def create_admin_user(
    db: AsyncSession,
    user_in: usr_schemas.UserCreate
) -> None:
    """
    데이터베이스에 관리자 사용자를 생성하는 비동기 함수
    """
    if user_in.email and await usr_crud.user.get_by_email(db, email=user_in.email):
        print(f"오류: 이미 존재하는 이메일입니다: {user_in.email}")
        return

    if await usr_crud.user.get_by_username(db, username=user_in.username):
        print(f"오류: 이미 존재하는 사용자명입니다: {user_in.username}")
        return

    await usr_crud.user.create(db, obj_in=user_in)
    print(f"관리자 계정이 성공적으로 생성되었습니다: {user_in.username}")


@cli.command()
def main(
    username: str = typer.Option(
        ..., '--username', '-u',
        prompt="관리자 사용자명(ID)을 입력하세요",
        help="로그인 시 사용할 사용자명(ID)입니다."
    ),
    password: str = typer.Option(
        ..., '--password', '-p',
        prompt="관리자 비밀번호를 입력하세요",
        hide_input=True,
        confirmation_prompt=True,
        help="생성할 관리자 계정의 비밀번호입니다. (최소 8자 이상)"
    ),
    email: str = typer.Option(
        "", '--email', '-e',
        help="관리자 이메일 주소입니다. (선택)"
    ),
    full_name: str = typer.Option(
        "Admin", '--name', '-n',
        help="관리자의 이름입니다."
    ),
    init_db: bool = typer.Option(
        False, '--init-db',
        help="계정 생성 전에 스키마와 테이블을 생성합니다. (개발용)"
    ),
):
    """
    사이더리 생산 관리 API를 위한 새로운 관리자(Admin) 계정을 생성합니다.
    """
    if len(password) < 8:
        print("오류: 비밀번호는 최소 8자 이상이어야 합니다.")
        raise typer.Abort()

    user_data = usr_schemas.UserCreate(
        username=username,
        email=email or None,
        password=password,
        full_name=full_name,
        role=UserRole.ADMIN,
    )

    async def run_creation():
        if init_db:
            await create_db_and_tables()
        async with AsyncSessionLocal() as db:
            await create_admin_user(db=db, user_in=user_data)

    print("관리자 계정 생성을 시작합니다...")
    asyncio.run(run_creation())


if __name__ == "__main__":
    cli()
