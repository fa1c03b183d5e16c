# tvcast/crud/media_entry.py
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tvcast.crud.base import CRUDBase
from tvcast.models.media_entry import MediaEntry
from tvcast.schemas.media_entry import MediaEntryCreate


class CRUDMediaEntry(CRUDBase[MediaEntry, MediaEntryCreate]):
    async def list_by_channel(
        self,
        db: AsyncSession,
        *,
        channel_id: str,
    ) -> List[MediaEntry]:
        """
        Grade do canal na ordem de origem (position, depois created_at/id para
        desempate determinístico).
        """
        stmt = (
            select(MediaEntry)
            .where(MediaEntry.channel_id == channel_id)
            .order_by(MediaEntry.position.asc(), MediaEntry.created_at.asc(), MediaEntry.id.asc())
        )
        res = await db.execute(stmt)
        return list(res.scalars().all())

    async def create_for_channel(
        self,
        db: AsyncSession,
        *,
        channel_id: str,
        obj_in: MediaEntryCreate,
    ) -> MediaEntry:
        """
        Insere a mídia no fim da grade (position = maior + 1).
        """
        stmt = select(func.max(MediaEntry.position)).where(MediaEntry.channel_id == channel_id)
        current_max: Optional[int] = (await db.execute(stmt)).scalar_one_or_none()

        data = obj_in.model_dump()
        data["channel_id"] = channel_id
        data["position"] = 0 if current_max is None else current_max + 1
        return await self.create(db, data)

    async def get_for_channel(
        self,
        db: AsyncSession,
        *,
        channel_id: str,
        media_id: str,
    ) -> Optional[MediaEntry]:
        stmt = select(MediaEntry).where(
            MediaEntry.channel_id == channel_id,
            MediaEntry.id == media_id,
        )
        res = await db.execute(stmt)
        return res.scalar_one_or_none()


media_entry = CRUDMediaEntry(MediaEntry)
