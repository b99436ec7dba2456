"""Agent Memory FastAPI Backend: main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agentmem import config
from agentmem.routers.memory import memory_router

from agentmem.db import connection, migrations
from agentmem.db.backfill_engine import MemoryBackfillEngine
from agentmem.agent_registry import agent_registry
from agentmem.live_sessions import LiveSessionClient
from agentmem.observability import initialize as initialize_observability, shutdown as shutdown_observability

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("agentmem")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("Agent memory backend starting up")
    initialize_observability(app)

    # 1. Initialize DB connection
    db = await connection.get_connection()

    # 2. Run migrations
    await migrations.run_migrations(db)

    # 3. Initialize backfill engine
    app.state.backfill_engine = MemoryBackfillEngine(
        db,
        registry=agent_registry,
        live_client=LiveSessionClient(config.SELF_HOST_URL),
    )

    yield

    logger.info("Agent memory backend shutting down")
    shutdown_observability(app)
    await connection.close_connection()


app = FastAPI(
    title="Agent Memory API",
    description="Backend API for agent conversation memory",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(memory_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "db": "connected" if connection.is_connected() else "disconnected",
    }
