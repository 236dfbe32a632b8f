from datashelf.db.config import engine
from datashelf.db.meta import meta
from datashelf.db.models import load_all_models


async def create_database() -> None:
    """Create all tables for the loaded models."""
    load_all_models()
    async with engine.begin() as conn:
        await conn.run_sync(meta.create_all)


async def drop_database() -> None:
    """Drop all tables for the loaded models."""
    load_all_models()
    async with engine.begin() as conn:
        await conn.run_sync(meta.drop_all)
