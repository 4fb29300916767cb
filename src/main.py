from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.adapters.api.controllers.map import router as map_router
from src.adapters.api.controllers.transit import router as transit_router
from src.adapters.api.dependencies import get_runtime_config, get_transit_model_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if get_runtime_config().warm_up_on_start:
        snapshot = await get_transit_model_service().refresh_in_background()
        logging.getLogger("uvicorn.error").info(
            "Transit model ready: %d routes, %d stops (%s schedules)",
            len(snapshot.routes),
            len(snapshot.stops),
            snapshot.schedule_source,
        )
    yield


app = FastAPI(title="Transit Model", lifespan=lifespan)
app.include_router(transit_router)
app.include_router(map_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Ensure API errors are JSON so map clients can display them."""

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = (os.getenv("TRANSIT_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    if reveal or isinstance(exc, (FileNotFoundError, RuntimeError, ValueError)):
        detail = str(exc) or exc.__class__.__name__
    else:
        detail = "Internal Server Error"

    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
