# tvcast/crud/channel.py
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from tvcast.crud.base import CRUDBase
from tvcast.models.channel import Channel


class CRUDChannel(CRUDBase[Channel, Any]):
    """
    Acesso mínimo a canais. Não há rotas de CRUD de canal neste serviço:
    create() é usado por seeds e pelos testes.
    """

    async def is_live(self, db: AsyncSession, channel_id: str) -> bool:
        obj = await self.get(db, channel_id)
        return bool(obj and obj.is_live)


channel = CRUDChannel(Channel)
