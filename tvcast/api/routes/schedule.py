# tvcast/api/routes/schedule.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tvcast.api.deps import get_db_session
from tvcast.crud import channel as crud_channel
from tvcast.crud import media_entry as crud_media
from tvcast.schemas.media_entry import MediaEntryRead
from tvcast.schemas.schedule import ScheduleSelectionRead
from tvcast.services.schedule_resolver import index_of, next_after, reference_now, resolve_scheduled

router = APIRouter()


def _selection(entries, selected, now: datetime) -> ScheduleSelectionRead:
    if selected is None:
        return ScheduleSelectionRead(reference_time=now)
    return ScheduleSelectionRead(
        reference_time=now,
        entry=MediaEntryRead.model_validate(selected),
        index=index_of(entries, selected.id),
    )


async def _load_lineup(db: AsyncSession, channel_id: str):
    if not await crud_channel.get(db, id=channel_id):
        raise HTTPException(status_code=404, detail="Channel not found")
    return await crud_media.list_by_channel(db, channel_id=channel_id)


@router.get("/{channel_id}/schedule/now", response_model=ScheduleSelectionRead)
async def schedule_now(
    channel_id: str,
    at: Optional[datetime] = Query(None, description="Instante a avaliar (default: agora)"),
    db: AsyncSession = Depends(get_db_session),
):
    """
    O que deve estar tocando agora no canal. entry=null quando a grade está
    vazia ou nenhuma janela casa e não há mídia 24/7.
    """
    entries = await _load_lineup(db, channel_id)
    now = reference_now(at)
    return _selection(entries, resolve_scheduled(entries, now), now)


@router.get("/{channel_id}/schedule/next", response_model=ScheduleSelectionRead)
async def schedule_next(
    channel_id: str,
    after: Optional[str] = Query(None, description="Id da mídia que acabou de terminar"),
    at: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Próxima mídia quando `after` termina: a agendada, se for outra; senão a
    seguinte da grade, em loop.
    """
    entries = await _load_lineup(db, channel_id)
    now = reference_now(at)
    return _selection(entries, next_after(entries, after, now), now)
