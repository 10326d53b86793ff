import logging
import random
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bookswap_engine.config import Settings, get_settings
from bookswap_engine.database.connection import close_store, connect_store
from bookswap_engine.database.store import KeyValueStore
from bookswap_engine.engine import Engine
from bookswap_engine.routers.conversations import router as conversations_router
from bookswap_engine.routers.notifications import router as notifications_router
from bookswap_engine.routers.session import router as session_router
from bookswap_engine.utils.errors import EngineError
from bookswap_engine.utils.scheduler import AsyncioScheduler, Scheduler

logger = logging.getLogger(__name__)


def create_app(
    store: Optional[KeyValueStore] = None,
    scheduler: Optional[Scheduler] = None,
    settings: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):

        engine = Engine(
            connect_store(store, backend=settings.store_backend),
            scheduler or AsyncioScheduler(),
            settings=settings,
            rng=rng,
        )
        app.state.engine = engine
        try:
            yield
        finally:
            engine.shutdown()
            close_store()

    app = FastAPI(title="BookSwap conversations & notifications", lifespan=lifespan)

    @app.exception_handler(EngineError)
    async def engine_error_handler(request: Request, exc: EngineError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})

    app.include_router(session_router)
    app.include_router(conversations_router)
    app.include_router(notifications_router)

    @app.get("/")
    async def root():

        engine = app.state.engine
        return {"message": "BookSwap engine running", "event_source": engine.event_source.running}

    return app


load_dotenv()
logging.basicConfig(
    level=get_settings().log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = create_app()
