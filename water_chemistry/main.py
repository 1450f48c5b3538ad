import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from water_chemistry.api.routes import router
from water_chemistry.core.config import settings
from water_chemistry.db import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(settings.DATABASE_PATH)  # runs at startup
    logger.info("Record store ready: %s (pKa mode: %s)", settings.DATABASE_PATH, settings.PKA_MODE)
    yield


app = FastAPI(
    title="Water Chemistry Service",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(router)
