# init_db.py
"""
Create the schema and, optionally, a staff account.

    python init_db.py                       # create missing tables
    python init_db.py --drop                # drop and recreate everything
    python init_db.py --national-id 30111222 --full-name "Ana Ruiz" \
        --password secret123 --role PROFESSIONAL --specialty Nutrition
"""
import argparse
import asyncio

from clinic.db.sql import AsyncSessionLocal, engine, init_db
from clinic.modules.users.models import UserRole
from clinic.modules.users.repository import NationalIdAlreadyExistsError
from clinic.modules.users.service import create_staff_user


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--drop", action="store_true", help="drop all tables first")
    parser.add_argument("--national-id")
    parser.add_argument("--full-name")
    parser.add_argument("--password")
    parser.add_argument("--email")
    parser.add_argument("--specialty")
    parser.add_argument(
        "--role",
        choices=[r.value for r in UserRole],
        default=UserRole.PROFESSIONAL.value,
    )
    return parser.parse_args()


async def main(args: argparse.Namespace) -> None:
    try:
        await init_db(engine, drop=args.drop)
        print("Database schema ready.")
        if args.national_id:
            await _create_user(args)
    finally:
        await engine.dispose()


async def _create_user(args: argparse.Namespace) -> None:
    if not (args.full_name and args.password):
        raise SystemExit("--full-name and --password are required to create a user")

    async with AsyncSessionLocal() as session:
        try:
            user = await create_staff_user(
                session,
                national_id=args.national_id,
                full_name=args.full_name,
                password=args.password,
                role=UserRole(args.role),
                email=args.email,
                specialty=args.specialty,
            )
        except NationalIdAlreadyExistsError:
            raise SystemExit(f"A user with national id {args.national_id} already exists")
        await session.commit()
        print(f"Created {user.role} {user.full_name} ({user.id})")


if __name__ == "__main__":
    asyncio.run(main(_parse_args()))
