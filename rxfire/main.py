"""FastAPI application setup for the prescribed fire weather service."""

from fastapi import FastAPI

from .api import router as api_router

app = FastAPI(title="Prescribed Fire Weather")


@app.get("/healthz")
def healthz():
    """Liveness check."""
    return {"status": "ok"}


# API routes
app.include_router(api_router, prefix="/v1")
