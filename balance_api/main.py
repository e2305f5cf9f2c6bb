"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Lifespan manager — logging, database and job queue setup/teardown
  2. Middleware — CORS and request logging
  3. Exception handlers — maps domain and transient storage errors to HTTP
  4. Router registration — mounts all API endpoint groups

Running locally:
    uvicorn balance_api.main:app --reload

The reset worker is a separate process:
    arq balance_api.jobs.worker.WorkerSettings
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from balance_api.config import settings
from balance_api.database import Database
from balance_api.exceptions import register_exception_handlers
from balance_api.jobs.queue import ArqJobQueue
from balance_api.logging_config import configure_logging
from balance_api.middleware import RequestLogMiddleware
from balance_api.routers import balance, balance_reset, users


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
      Configures logging, creates the Database (and any missing tables —
      a development convenience) and connects to the job queue.

    Shutdown:
      Closes the queue connection and disposes of the database engine.
    """
    # --- Startup ---
    configure_logging()
    database = Database(
        settings.DATABASE_URL,
        lock_timeout_seconds=settings.DB_LOCK_TIMEOUT_SECONDS,
        echo=settings.DEBUG,
    )
    await database.create_all()
    job_queue = await ArqJobQueue.connect()

    app.state.database = database
    app.state.job_queue = job_queue
    yield
    # --- Shutdown ---
    await job_queue.close()
    await database.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Accounts with balances, atomic transfers, and queued balance resets",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLogMiddleware)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(balance.router, prefix="/balance", tags=["Balance"])
app.include_router(balance_reset.router, prefix="/balance-reset", tags=["Balance"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness check for load balancers and orchestrators."""
    return {"status": "ok", "version": settings.APP_VERSION}
