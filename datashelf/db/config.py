from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from datashelf.settings import settings

engine = create_async_engine(settings.db_url, echo=settings.db_echo, pool_pre_ping=True)

session_maker = async_sessionmaker(engine, expire_on_commit=False)
