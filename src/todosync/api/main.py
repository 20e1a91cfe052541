"""FastAPI application factory."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import SQLModel

from todosync.db.engine import get_engine
from todosync.api.routes import sync as sync_routes, todos


def create_app() -> FastAPI:
    """Build and return the FastAPI app."""

    engine = get_engine()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables on startup (idempotent)
        SQLModel.metadata.create_all(engine)
        yield

    app = FastAPI(
        title="Todo Sync API",
        description="Local to-do lists kept in sync with a remote to-do service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(todos.router, prefix="/todolists", tags=["todolists"])
    app.include_router(sync_routes.router, prefix="/sync", tags=["sync"])

    return app


# Module-level app instance for uvicorn
app = create_app()
