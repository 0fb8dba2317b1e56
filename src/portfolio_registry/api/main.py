"""FastAPI application entry point for the Portfolio Registry API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_registry import __version__
from portfolio_registry.api.routes import health, portfolios, professional_details

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create tables on startup and release pooled connections on shutdown."""
    from portfolio_registry.data.db import dispose_engine, init_db

    init_db()
    yield
    dispose_engine()


app = FastAPI(
    title="Portfolio Registry API",
    description="CRUD and search over portfolios and their professional details",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(portfolios.router, prefix="/api")
app.include_router(professional_details.router, prefix="/api")


def main() -> None:
    """Start the development server."""
    import uvicorn

    uvicorn.run(
        "portfolio_registry.api.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
