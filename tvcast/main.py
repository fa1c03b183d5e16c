# tvcast/main.py
import logging

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tvcast.api.routes import hls_playlist, proxy_stream
from tvcast.api.v1.api import api_router
from tvcast.core.config import settings
from tvcast.db.session import init_db
from tvcast.services.availability import AvailabilityCache

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("tvcast.main")

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
)

# --- CORS aberto: player embutido em qualquer origem ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup() -> None:
    await init_db()

    # client HTTP e cache de disponibilidade: um por processo
    app.state.http_client = httpx.AsyncClient()
    app.state.availability_cache = AvailabilityCache(app.state.http_client)
    logger.info("%s iniciado", settings.APP_NAME)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    client = getattr(app.state, "http_client", None)
    if client is not None:
        logger.info("Fechando client HTTP compartilhado...")
        await client.aclose()
        app.state.http_client = None
        app.state.availability_cache = None


@app.get("/health", tags=["health"])
async def healthcheck():
    return {"status": "ok"}


# endpoints no formato das antigas edge functions (usados direto pelos players)
app.include_router(hls_playlist.router, tags=["hls"])
app.include_router(proxy_stream.router, tags=["proxy"])

app.include_router(api_router, prefix="/api/v1")
