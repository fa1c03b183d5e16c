# tvcast/crud/channel_viewer.py
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tvcast.models.channel_viewer import ChannelViewer


class CRUDChannelViewer:
    """
    Operações da tabela de presença (channel_viewers).

    Cada sessão é dona de exatamente uma linha (session_id único), então não
    há conflito de escrita entre sessões. Nenhum método faz commit: quem chama
    decide a transação.
    """

    async def get_by_session(
        self,
        db: AsyncSession,
        *,
        session_id: str,
    ) -> Optional[ChannelViewer]:
        stmt = select(ChannelViewer).where(ChannelViewer.session_id == session_id)
        res = await db.execute(stmt)
        return res.scalar_one_or_none()

    async def upsert(
        self,
        db: AsyncSession,
        *,
        channel_id: str,
        session_id: str,
        observer_id: str | None,
        seen_at: datetime,
    ) -> ChannelViewer:
        obj = await self.get_by_session(db, session_id=session_id)
        if obj is None:
            obj = ChannelViewer(
                channel_id=channel_id,
                session_id=session_id,
                observer_id=observer_id,
                joined_at=seen_at,
                last_seen_at=seen_at,
            )
            db.add(obj)
        else:
            obj.channel_id = channel_id
            obj.observer_id = observer_id
            obj.last_seen_at = seen_at
        await db.flush()
        return obj

    async def touch(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        seen_at: datetime,
        channel_id: str | None = None,
    ) -> int:
        stmt = (
            update(ChannelViewer)
            .where(ChannelViewer.session_id == session_id)
            .values(last_seen_at=seen_at)
        )
        if channel_id is not None:
            stmt = stmt.where(ChannelViewer.channel_id == channel_id)
        res = await db.execute(stmt)
        return res.rowcount or 0

    async def delete_by_session(
        self,
        db: AsyncSession,
        *,
        session_id: str,
    ) -> int:
        stmt = delete(ChannelViewer).where(ChannelViewer.session_id == session_id)
        res = await db.execute(stmt)
        return res.rowcount or 0

    async def delete_stale(
        self,
        db: AsyncSession,
        *,
        cutoff: datetime,
        channel_id: str | None = None,
    ) -> int:
        """
        Apaga linhas com last_seen_at <= cutoff (do canal, ou de todos se
        channel_id=None). Idempotente: apagar de novo é no-op.
        """
        stmt = delete(ChannelViewer).where(ChannelViewer.last_seen_at <= cutoff)
        if channel_id is not None:
            stmt = stmt.where(ChannelViewer.channel_id == channel_id)
        res = await db.execute(stmt)
        return res.rowcount or 0

    async def count_alive(
        self,
        db: AsyncSession,
        *,
        channel_id: str,
        cutoff: datetime,
    ) -> int:
        stmt = (
            select(func.count(ChannelViewer.id))
            .where(ChannelViewer.channel_id == channel_id)
            .where(ChannelViewer.last_seen_at > cutoff)
        )
        res = await db.execute(stmt)
        return int(res.scalar_one() or 0)


channel_viewer = CRUDChannelViewer()
