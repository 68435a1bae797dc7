from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from app.core.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("postgresql+asyncpg"):
    # Bound both the connection handshake and each statement
    connect_args = {
        "timeout": settings.DB_CONNECT_TIMEOUT_SECONDS,
        "command_timeout": settings.DB_CONNECT_TIMEOUT_SECONDS * 3,
    }

engine = create_async_engine(str(settings.DATABASE_URL), pool_pre_ping=True, connect_args=connect_args)
AsyncSessionLocal = async_sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
