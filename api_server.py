from __future__ import annotations  # FastAPI server for test authoring and results

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router as tests_router
from config.settings import settings
from storage.migrate import migrate


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:  # Ensure tables exist before serving
    migrate(settings.DB_PATH)
    yield


app = FastAPI(title="Proctored Test API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.include_router(tests_router)


@app.get("/api/health")
def health() -> dict:  # Liveness probe
    return {"status": "ok"}
