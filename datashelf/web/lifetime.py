import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from datashelf.db.config import engine
from datashelf.db.models import load_all_models
from datashelf.settings import settings


def setup_logging() -> None:
    """Configure the root logger from settings."""
    logging.basicConfig(
        level=settings.log_level.value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:  # pragma: no cover
    """
    Actions to run on application startup and shutdown.

    Registers the models on startup and closes pooled database
    connections on shutdown.

    :param app: the fastAPI application.
    :yield: control to the running application.
    """
    setup_logging()
    load_all_models()
    app.state.db_engine = engine
    yield
    await engine.dispose()
