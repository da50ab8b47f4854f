import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tribute_sim import __version__
from tribute_sim.api.routes import router
from tribute_sim.catalog.startup import init_catalog_for_app

logging.basicConfig(level=os.environ.get("TRIBUTE_SIM_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_catalog_for_app()
    yield


app = FastAPI(title="tribute-sim", version=__version__, lifespan=lifespan)
app.include_router(router)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "tribute-sim", "version": __version__}
