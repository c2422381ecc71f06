from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from shared.config.database import SERVICE_SCHEMAS, Base, engine
from shared.errors import register_exception_handlers
from shared.observability import setup_observability
from shared.security import limiter

# IMPORTANT: import models so they register with Base
from services.auth_service import models as admin_models  # noqa: F401
from services.order_service import models as order_models  # noqa: F401

from services.auth_service.router import router as auth_router
from services.notification_service.router import router as email_router
from services.order_service.router import public_router as storefront_router
from services.order_service.router import router as orders_router
from services.payment_service.router import router as payments_router


def create_app() -> FastAPI:
    app = FastAPI(title="Butcher Christmas Pre-Orders", version="1.0.0")

    # --- OBSERVABILITY BOOTSTRAP ---
    setup_observability(app, "butcher_preorder")

    # --- ERRORS & SECURITY ---
    register_exception_handlers(app)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.include_router(storefront_router)
    app.include_router(auth_router)
    app.include_router(orders_router)
    app.include_router(email_router)
    app.include_router(payments_router)

    @app.on_event("startup")
    async def startup_event():
        async with engine.begin() as conn:
            if conn.dialect.name == "postgresql":
                for schema in SERVICE_SCHEMAS:
                    await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))

            # Create all tables
            await conn.run_sync(Base.metadata.create_all)

    return app


app = create_app()
