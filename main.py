"""Run the FastAPI app for the Tides voice concierge."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from src.routers import chat_router, voice_router
from src.routers.dependencies import drain_recorder

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Let background exchange writes finish before the process exits
    await drain_recorder()


app = FastAPI(title="Tides Concierge", version="0.1.0", lifespan=lifespan)
app.include_router(chat_router)
app.include_router(voice_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
