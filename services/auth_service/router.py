"""
Admin identity endpoints, mounted under /api/admin.

Login, setup and forgot-password are public but rate limited per IP;
everything else requires the admin_session cookie.
"""
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.config.database import get_db
from shared.security import get_optional_admin, limiter, require_admin_session

from .schemas import (
    AdminLogin,
    AdminSetup,
    AuthStatus,
    ForgotPassword,
    ResetPassword,
    SuccessResponse,
)
from .service import AuthService

router = APIRouter(prefix="/api/admin", tags=["Admin Auth"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.IS_PRODUCTION,  # Only sent over HTTPS in production
        samesite="lax",
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        path="/",
    )


def _clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")


@router.post("/login", response_model=SuccessResponse, response_model_exclude_none=True)
@limiter.limit("10/minute")
async def login(
    request: Request,
    response: Response,
    payload: AdminLogin,
    db: AsyncSession = Depends(get_db),
):
    token = await AuthService.login(db, payload)
    _set_session_cookie(response, token)
    return SuccessResponse()


@router.get("/logout", include_in_schema=False)
async def logout_redirect():
    response = RedirectResponse(url="/admin/login")
    _clear_session_cookie(response)
    return response


@router.delete("/logout", response_model=SuccessResponse, response_model_exclude_none=True)
async def logout(response: Response):
    _clear_session_cookie(response)
    return SuccessResponse()


@router.post("/setup", response_model=SuccessResponse, response_model_exclude_none=True)
@limiter.limit("5/minute")
async def setup(
    request: Request,
    payload: AdminSetup,
    db: AsyncSession = Depends(get_db),
):
    await AuthService.setup(db, payload)
    return SuccessResponse(message="Admin created successfully")


@router.post("/forgot-password", response_model=SuccessResponse, response_model_exclude_none=True)
@limiter.limit("5/minute")
async def forgot_password(
    request: Request,
    payload: ForgotPassword,
    db: AsyncSession = Depends(get_db),
):
    await AuthService.forgot_password(db, payload)
    return SuccessResponse()


@router.patch("/reset-db-password", response_model=SuccessResponse, response_model_exclude_none=True)
async def reset_password(
    payload: ResetPassword,
    actor: str = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    await AuthService.reset_password(db, payload, actor)
    return SuccessResponse()


@router.api_route("/auth", methods=["GET", "POST"], response_model=AuthStatus, response_model_exclude_none=True)
async def auth_status(username: str | None = Depends(get_optional_admin)):
    authenticated = username is not None
    return JSONResponse(
        {"authenticated": authenticated},
        status_code=status.HTTP_200_OK if authenticated else status.HTTP_401_UNAUTHORIZED,
    )


@router.post("/verify-security", response_model=AuthStatus, response_model_exclude_none=True)
async def verify_security(
    username: str | None = Depends(get_optional_admin),
    db: AsyncSession = Depends(get_db),
):
    if username is None:
        return JSONResponse({"authenticated": False}, status_code=status.HTTP_401_UNAUTHORIZED)

    # A session without any admin rows means the database was reset
    if await AuthService.needs_setup(db):
        return AuthStatus(authenticated=False, needs_setup=True)

    return AuthStatus(authenticated=True)
