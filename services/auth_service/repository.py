from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Admin


class AdminRepository:

    @staticmethod
    async def create(db: AsyncSession, admin: Admin) -> Admin:
        db.add(admin)
        await db.commit()
        await db.refresh(admin)
        return admin

    @staticmethod
    async def count(db: AsyncSession) -> int:
        result = await db.execute(select(func.count(Admin.id)))
        return result.scalar_one()

    @staticmethod
    async def get_by_username(db: AsyncSession, username: str) -> Optional[Admin]:
        result = await db.execute(select(Admin).where(Admin.username == username))
        return result.scalars().first()

    @staticmethod
    async def update_password_hash(db: AsyncSession, admin: Admin, password_hash: str) -> Admin:
        admin.password_hash = password_hash
        await db.commit()
        await db.refresh(admin)
        return admin
