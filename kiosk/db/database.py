# kiosk/db/database.py
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from kiosk import config

# Async engine
engine = create_async_engine(config.DATABASE_URL, echo=config.SQL_ECHO)

# Async session factory
SessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Base class for models
Base = declarative_base()


# Session generator
async def get_db():
    async with SessionLocal() as session:
        yield session
