# tvcast/api/routes/media.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from tvcast.api.deps import get_db_session
from tvcast.crud import channel as crud_channel
from tvcast.crud import media_entry as crud_media
from tvcast.schemas.media_entry import MediaEntryCreate, MediaEntryRead

router = APIRouter()


async def _ensure_channel(db: AsyncSession, channel_id: str) -> None:
    if not await crud_channel.get(db, id=channel_id):
        raise HTTPException(status_code=404, detail="Channel not found")


@router.get("/{channel_id}/media", response_model=List[MediaEntryRead])
async def list_media(
    channel_id: str,
    db: AsyncSession = Depends(get_db_session),
):
    await _ensure_channel(db, channel_id)
    return await crud_media.list_by_channel(db, channel_id=channel_id)


@router.post(
    "/{channel_id}/media",
    response_model=MediaEntryRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_media(
    channel_id: str,
    media_in: MediaEntryCreate,
    db: AsyncSession = Depends(get_db_session),
):
    """
    Adiciona uma mídia no fim da grade. Janela com horário malformado
    (ex.: "25:00", "9h") ou só com uma das pontas -> 422.
    """
    await _ensure_channel(db, channel_id)
    return await crud_media.create_for_channel(db, channel_id=channel_id, obj_in=media_in)


@router.delete("/{channel_id}/media/{media_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_media(
    channel_id: str,
    media_id: str,
    db: AsyncSession = Depends(get_db_session),
):
    db_obj = await crud_media.get_for_channel(db, channel_id=channel_id, media_id=media_id)
    if not db_obj:
        raise HTTPException(status_code=404, detail="Media not found")
    await crud_media.remove(db, id=media_id)
    return None
