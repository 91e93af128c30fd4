#!/usr/bin/env python3
"""
Create an admin account, or promote an existing user to admin.

    python create_admin.py --email admin@example.com --password secret --name Admin
"""
import argparse
import asyncio

from sqlalchemy import select

from app.core.security import hash_password
from app.database import SessionLocal, engine, init_models
from app.models import User
from app.schemas.common import normalize_email


async def create_admin(email: str, password: str, name: str, phone: str):
    email = normalize_email(email)
    await init_models()
    async with SessionLocal() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalars().first()
        if user is None:
            user = User(name=name, email=email, phone=phone, password_hash=hash_password(password), role="admin")
            session.add(user)
            print(f"✓ Created admin {email}")
        else:
            user.role = "admin"
            user.is_banned = False
            if password:
                user.password_hash = hash_password(password)
            print(f"✓ Promoted {email} to admin")
        await session.commit()
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Admin")
    parser.add_argument("--phone", default="")
    args = parser.parse_args()
    asyncio.run(create_admin(args.email, args.password, args.name, args.phone))
