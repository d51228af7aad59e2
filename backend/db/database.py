from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql import func

from core.config import settings


class Base(DeclarativeBase):
    pass


class StorageSlot(Base):
    """One keyed slot holding the JSON of a whole collection (items, logs, partners or assets)."""
    __tablename__ = "storage_slots"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


def make_engine(url: str = settings.database_url) -> AsyncEngine:
    return create_async_engine(url, echo=settings.database_echo)


engine = make_engine()


async def create_db_and_tables(bind: AsyncEngine = engine):
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

