# main.py
from __future__ import annotations

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from core.logging_config import setup_logging
from core.providers import init_providers
from core.settings import get_settings

# Routers
from downloads.router import router as downloads_router
from health.router import router as health_router


# ---------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(get_settings().log.level)
    providers = init_providers(app)
    yield
    # Let queued media rescans finish before the process exits
    shutdown = getattr(providers.scanner, "shutdown", None)
    if callable(shutdown):
        shutdown()


app = FastAPI(
    title="Downloads Publisher",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------

app.include_router(health_router)
app.include_router(downloads_router)


# ---------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------

@app.get("/")
async def root():
    return {"status": "ok", "message": "Downloads publisher running"}


# ---------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
