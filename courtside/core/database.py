from .config import DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW, SERVICE_NAME
from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

engine = create_async_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    pool_size=DB_POOL_SIZE,
    max_overflow=DB_MAX_OVERFLOW,
    # Shows up in pg_stat_activity / pg_locks next to the seat row locks
    connect_args={"server_settings": {"application_name": SERVICE_NAME}},
)

# Ledger rows read after commit feed the projection and the response, so they must not expire
AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)

Base = declarative_base()


async def get_db() -> AsyncSession:
    """
    Request-scoped session. Services commit their own unit of work; this commits
    whatever is left and rolls back when the request fails.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            if session.in_transaction():
                await session.commit()
        except Exception:
            await session.rollback()
            raise
