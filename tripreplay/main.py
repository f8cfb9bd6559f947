# Role: FastAPI app bootstrap. Loads environment config early, registers routers, and exposes health/docs endpoints.

from fastapi import FastAPI

import tripreplay.config
tripreplay.config.load_env()

from tripreplay.api.conversations import router as conversations_router
from tripreplay.api.examples import router as examples_router
from tripreplay.api.replay import router as replay_router

app = FastAPI(title="Trip Replay API", version="0.1.0")
app.include_router(conversations_router)
app.include_router(replay_router)
app.include_router(examples_router)


@app.get("/")
def root() -> dict:
    # Role: quick discoverability for clients (where are docs/health).
    return {
        "message": "Trip Replay API is running",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
