"""
Admin identity: bootstrap, login, password recovery.

bcrypt is CPU-bound, so hashing and verification run in a worker thread
via asyncio.to_thread() instead of blocking the event loop.
"""
import asyncio

import structlog
from fastapi import HTTPException, status
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.security import create_session_token, verify_setup_key

from .models import Admin
from .repository import AdminRepository
from .schemas import AdminLogin, AdminSetup, ForgotPassword, ResetPassword

logger = structlog.get_logger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def normalize_security_answer(answer: str | None) -> str:
    return (answer or "").strip().lower()


class AuthService:

    @staticmethod
    async def _hash(secret: str) -> str:
        return await asyncio.to_thread(_pwd_context.hash, secret)

    @staticmethod
    async def _verify(plain: str, hashed: str | None) -> bool:
        if not hashed:
            return False
        return await asyncio.to_thread(_pwd_context.verify, plain, hashed)

    @staticmethod
    async def setup(db: AsyncSession, data: AdminSetup) -> Admin:
        # The first admin is free; further ones need the internal setup key
        admin_count = await AdminRepository.count(db)
        if admin_count > 0 and not verify_setup_key(data.setup_key):
            logger.warning("admin_setup_rejected", username=data.username)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Setup already completed",
            )

        if await AdminRepository.get_by_username(db, data.username):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Username already exists",
            )

        admin = Admin(
            username=data.username,
            password_hash=await AuthService._hash(data.password),
            security_answer_hash=await AuthService._hash(
                normalize_security_answer(data.security_answer)
            ),
        )
        try:
            admin = await AdminRepository.create(db, admin)
        except IntegrityError:
            await db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Username already exists",
            )

        logger.info("admin_created", username=admin.username)
        return admin

    @staticmethod
    async def login(db: AsyncSession, data: AdminLogin) -> str:
        """Checks credentials and returns a fresh session token."""
        admin = await AdminRepository.get_by_username(db, data.username)
        if not admin or not await AuthService._verify(data.password, admin.password_hash):
            logger.warning("admin_login_failed", username=data.username)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username or password",
            )

        logger.info("admin_login", username=admin.username)
        return create_session_token(admin.username)

    @staticmethod
    async def forgot_password(db: AsyncSession, data: ForgotPassword) -> None:
        admin = await AdminRepository.get_by_username(db, data.username)
        if not admin:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Username not found")

        answer = normalize_security_answer(data.security_answer)
        if not answer or not await AuthService._verify(answer, admin.security_answer_hash):
            logger.warning("admin_security_answer_rejected", username=data.username)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect security answer",
            )

        await AdminRepository.update_password_hash(
            db, admin, await AuthService._hash(data.new_password)
        )
        logger.info("admin_password_recovered", username=admin.username)

    @staticmethod
    async def reset_password(db: AsyncSession, data: ResetPassword, actor: str) -> None:
        admin = await AdminRepository.get_by_username(db, data.username)
        if not admin:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Username not found")

        await AdminRepository.update_password_hash(
            db, admin, await AuthService._hash(data.new_password)
        )
        logger.info("admin_password_reset", username=admin.username, actor=actor)

    @staticmethod
    async def needs_setup(db: AsyncSession) -> bool:
        return await AdminRepository.count(db) == 0
