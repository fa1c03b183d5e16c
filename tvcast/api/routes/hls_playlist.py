# tvcast/api/routes/hls_playlist.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tvcast.api.deps import get_db_session
from tvcast.crud import media_entry as crud_media
from tvcast.services.hls_playlist import HLS_MEDIA_TYPE, compile_playlist

logger = logging.getLogger("tvcast.api.hls_playlist")

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


@router.options("/hls-playlist")
async def hls_playlist_options():
    # preflight "de verdade" é respondido antes pelo CORSMiddleware
    return Response(status_code=200, headers=CORS_HEADERS)


@router.get("/hls-playlist")
async def get_hls_playlist(
    channel_id: Optional[str] = Query(None, alias="channelId"),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Manifesto HLS da grade do canal.

    - 400 sem channelId
    - 404 canal inexistente ou sem mídia (não distinguimos os dois casos)
    - 500 com {"error": ...} genérico; detalhe só no log
    """
    if not channel_id:
        return PlainTextResponse("Channel ID required", status_code=400)

    try:
        entries = await crud_media.list_by_channel(db, channel_id=channel_id)
        if not entries:
            return PlainTextResponse("No media found", status_code=404)
        playlist = compile_playlist(entries)
    except Exception:
        logger.exception("Erro gerando playlist do canal %s", channel_id)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    return Response(
        content=playlist,
        media_type=HLS_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache"},
    )
