# tvcast/api/routes/proxy_stream.py
import logging

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from tvcast.api.deps import get_availability_cache, get_http_client
from tvcast.core.config import settings
from tvcast.schemas.proxy import AvailabilityRead, ProxyRequest
from tvcast.services.availability import AvailabilityCache, UpstreamError, fetch_upstream

logger = logging.getLogger("tvcast.api.proxy_stream")

router = APIRouter()


@router.post("/proxy-stream")
async def proxy_stream(
    body: ProxyRequest,
    cache: AvailabilityCache = Depends(get_availability_cache),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    action="check" -> {"available", "url", "cached"} (cache de 60s).
    Sem action     -> corpo da fonte repassado com o content-type original.
    """
    if not body.url:
        return JSONResponse({"error": "URL required"}, status_code=400)

    if body.action == "check":
        cached = cache.is_cached(body.url)
        available = await cache.check(body.url)
        return AvailabilityRead(available=available, url=body.url, cached=cached)

    logger.info("Proxying URL: %s", body.url)
    try:
        upstream = await fetch_upstream(client, body.url)
    except UpstreamError as exc:
        return JSONResponse(
            {"error": "Upstream request failed"},
            status_code=exc.status_code or 502,
        )
    except Exception:
        logger.exception("Erro inesperado no proxy de %s", body.url)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    return Response(
        content=upstream.content,
        media_type=upstream.content_type,
        headers={
            "Cache-Control": f"public, max-age={settings.PROXY_CACHE_MAX_AGE_SECONDS}",
            "X-Proxy-Status": "direct",
        },
    )
