import logging

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dbexplorer.config import settings
from dbexplorer.middleware.error_handler import ErrorHandlerMiddleware
from dbexplorer.repositories.connection_registry import ConnectionRegistry
from dbexplorer.repositories.session_store import SessionStore
from dbexplorer.routes import database

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger(__name__)
    logger.info("Saved connections file: %s", app.state.connection_registry.path)
    yield
    logger.info("Shutting down with %d open sessions", len(app.state.session_store.list()))


def create_app(
    session_store: SessionStore | None = None,
    connection_registry: ConnectionRegistry | None = None,
) -> FastAPI:
    app = FastAPI(title="DB Explorer", version="0.1.0", lifespan=lifespan)
    app.state.session_store = session_store or SessionStore()
    app.state.connection_registry = connection_registry or ConnectionRegistry(settings.connections_file)

    # Middleware (order matters: outermost first)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(database.router, prefix="/api")

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
