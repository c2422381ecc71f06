from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from shared.config import settings

# Each service owns a Postgres schema; engines without schema support
# (SQLite in tests) get them mapped away.
SERVICE_SCHEMAS = ("admin_schema", "order_schema")


def build_engine(url: str, echo: bool = False, **options):
    if not url.startswith("postgresql"):
        options["execution_options"] = {
            "schema_translate_map": {schema: None for schema in SERVICE_SCHEMAS}
        }
    return create_async_engine(url, echo=echo, **options)


engine = build_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session

