# tvcast/services/presence.py
"""
Contador de espectadores por canal (modelo heartbeat/TTL).

Lado servidor: PresenceTracker faz as operações na tabela channel_viewers,
sempre varrendo as linhas vencidas do canal antes de registrar ou contar
(remoção preguiçosa, sem timer de limpeza). Com um broker configurado,
registro e saída publicam "joined"/"left" no tópico viewers-<channel_id>.

Lado cliente: ViewerSession reproduz o ciclo de vida de um player montado:
registra uma vez, manda heartbeat a cada PRESENCE_HEARTBEAT_SECONDS,
reconsulta a contagem e se desregistra ao desmontar. Se recebe o broker,
também reconsulta a contagem a cada entrada/saída de outra sessão. Falhas
do store são logadas e engolidas: no pior caso o contador fica subestimado.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import AsyncExitStack
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tvcast.core.clock import utcnow
from tvcast.core.config import settings
from tvcast.crud import channel_viewer as crud_viewer
from tvcast.schemas.notification import ViewerMembershipEvent
from tvcast.services.viewer_notifications import NotificationBroker, membership_topic

logger = logging.getLogger("tvcast.presence")


def new_session_id() -> str:
    """Id opaco da sessão de visualização, gerado uma vez por montagem."""
    return uuid.uuid4().hex


class PresenceTracker:
    def __init__(
        self,
        *,
        ttl_seconds: int | None = None,
        clock: Callable[[], datetime] = utcnow,
        events: NotificationBroker | None = None,
    ) -> None:
        self.ttl = timedelta(
            seconds=ttl_seconds if ttl_seconds is not None else settings.PRESENCE_TTL_SECONDS
        )
        self.clock = clock
        self.events = events

    def _cutoff(self) -> datetime:
        return self.clock() - self.ttl

    async def sweep(self, db: AsyncSession, channel_id: str | None = None) -> int:
        """
        Apaga presenças vencidas (do canal, ou globais com channel_id=None).
        """
        removed = await crud_viewer.delete_stale(db, cutoff=self._cutoff(), channel_id=channel_id)
        await db.commit()
        if removed:
            logger.debug("Removidas %s presenças vencidas (canal=%s)", removed, channel_id)
        return removed

    async def register(
        self,
        db: AsyncSession,
        *,
        channel_id: str,
        session_id: str,
        observer_id: str | None = None,
    ) -> None:
        await crud_viewer.delete_stale(db, cutoff=self._cutoff(), channel_id=channel_id)
        await crud_viewer.upsert(
            db,
            channel_id=channel_id,
            session_id=session_id,
            observer_id=observer_id,
            seen_at=self.clock(),
        )
        await db.commit()
        await self._announce(channel_id, "joined", session_id)

    async def heartbeat(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        channel_id: str | None = None,
    ) -> bool:
        """
        Atualiza last_seen_at da sessão. False se a sessão não tem linha
        (nunca registrada ou já varrida) ou se é de outro canal.
        """
        touched = await crud_viewer.touch(
            db, session_id=session_id, seen_at=self.clock(), channel_id=channel_id
        )
        await db.commit()
        return touched > 0

    async def count(self, db: AsyncSession, *, channel_id: str) -> int:
        cutoff = self._cutoff()
        await crud_viewer.delete_stale(db, cutoff=cutoff, channel_id=channel_id)
        await db.commit()
        return await crud_viewer.count_alive(db, channel_id=channel_id, cutoff=cutoff)

    async def deregister(self, db: AsyncSession, *, session_id: str) -> bool:
        row = await crud_viewer.get_by_session(db, session_id=session_id)
        if row is None:
            return False
        channel_id = row.channel_id

        await crud_viewer.delete_by_session(db, session_id=session_id)
        await db.commit()
        await self._announce(channel_id, "left", session_id)
        return True

    async def _announce(self, channel_id: str, change: str, session_id: str) -> None:
        if self.events is None:
            return
        try:
            await self.events.publish(
                membership_topic(channel_id),
                ViewerMembershipEvent(change=change, session_id=session_id),
            )
        except Exception:
            logger.warning(
                "Falha ao publicar %s da sessão %s (canal %s)",
                change,
                session_id,
                channel_id,
                exc_info=True,
            )


# ----------------------------------------------------------------------
# Lado cliente
# ----------------------------------------------------------------------


class PresenceStore(Protocol):
    async def register(self, channel_id: str, session_id: str, observer_id: str | None) -> None: ...

    async def heartbeat(self, session_id: str) -> bool: ...

    async def count(self, channel_id: str) -> int: ...

    async def deregister(self, session_id: str) -> None: ...


class DatabasePresenceStore:
    """
    PresenceStore em cima do PresenceTracker, abrindo uma sessão de banco por
    operação (como o worker faz por mensagem).
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tracker: PresenceTracker | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.tracker = tracker or PresenceTracker()

    async def register(self, channel_id: str, session_id: str, observer_id: str | None) -> None:
        async with self.session_factory() as db:
            await self.tracker.register(
                db, channel_id=channel_id, session_id=session_id, observer_id=observer_id
            )

    async def heartbeat(self, session_id: str) -> bool:
        async with self.session_factory() as db:
            return await self.tracker.heartbeat(db, session_id=session_id)

    async def count(self, channel_id: str) -> int:
        async with self.session_factory() as db:
            return await self.tracker.count(db, channel_id=channel_id)

    async def deregister(self, session_id: str) -> None:
        async with self.session_factory() as db:
            await self.tracker.deregister(db, session_id=session_id)


class ViewerSession:
    """
    Uma sessão de visualização (um player montado).

        session = ViewerSession(store, channel_id, events=broker)
        await session.start()
        ...
        session.displayed_count
        ...
        await session.stop()
    """

    def __init__(
        self,
        store: PresenceStore,
        channel_id: str,
        *,
        observer_id: str | None = None,
        heartbeat_seconds: float | None = None,
        events: NotificationBroker | None = None,
    ) -> None:
        self.store = store
        self.channel_id = channel_id
        self.observer_id = observer_id
        self.session_id = new_session_id()
        self.heartbeat_seconds = (
            heartbeat_seconds
            if heartbeat_seconds is not None
            else settings.PRESENCE_HEARTBEAT_SECONDS
        )
        self.events = events

        self.registered = False
        self.viewer_count = 0

        self._register_attempted = False
        self._task: Optional[asyncio.Task] = None
        self._membership_task: Optional[asyncio.Task] = None
        self._subscriptions = AsyncExitStack()
        self._stopped = False

    @property
    def displayed_count(self) -> int:
        # quem está assistindo sempre conta a si mesmo
        return max(self.viewer_count, 1)

    async def start(self) -> None:
        if self._stopped:
            raise RuntimeError("ViewerSession já foi encerrada")

        await self._register_once()
        await self._refresh_count()

        if self.events is not None and self._membership_task is None:
            await self._follow_membership()

        if self._task is None:
            self._task = asyncio.create_task(
                self._heartbeat_loop(),
                name=f"viewer_heartbeat:{self.channel_id}:{self.session_id}",
            )

    async def stop(self) -> None:
        self._stopped = True

        for task in (self._task, self._membership_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._membership_task = None
        await self._subscriptions.aclose()

        if not self.registered:
            return

        try:
            await self.store.deregister(self.session_id)
        except Exception:
            logger.warning(
                "Falha ao remover presença da sessão %s (canal %s)",
                self.session_id,
                self.channel_id,
                exc_info=True,
            )
        self.registered = False

    async def tick(self) -> None:
        """
        Um ciclo do heartbeat: atualiza last_seen (se registrado) e reconsulta
        a contagem, independente do resultado do heartbeat.
        """
        if self.registered:
            try:
                await self.store.heartbeat(self.session_id)
            except Exception:
                logger.warning(
                    "Heartbeat falhou para sessão %s (canal %s)",
                    self.session_id,
                    self.channel_id,
                    exc_info=True,
                )
        await self._refresh_count()

    async def _register_once(self) -> None:
        if self._register_attempted:
            return
        self._register_attempted = True

        try:
            await self.store.register(self.channel_id, self.session_id, self.observer_id)
        except Exception:
            logger.warning(
                "Não foi possível registrar espectador no canal %s; contador pode ficar subestimado",
                self.channel_id,
                exc_info=True,
            )
            return
        self.registered = True

    async def _refresh_count(self) -> None:
        try:
            self.viewer_count = await self.store.count(self.channel_id)
        except Exception:
            logger.warning("Falha ao consultar espectadores do canal %s", self.channel_id, exc_info=True)

    async def _follow_membership(self) -> None:
        try:
            queue = await self._subscriptions.enter_async_context(
                self.events.subscribe(membership_topic(self.channel_id))
            )
        except Exception:
            # sem eventos o contador ainda anda pelo heartbeat
            logger.warning(
                "Não foi possível assinar entradas/saídas do canal %s",
                self.channel_id,
                exc_info=True,
            )
            return

        self._membership_task = asyncio.create_task(
            self._membership_loop(queue),
            name=f"viewer_membership:{self.channel_id}:{self.session_id}",
        )

    async def _membership_loop(self, queue: asyncio.Queue) -> None:
        while not self._stopped:
            message = await queue.get()
            if message.event.session_id == self.session_id:
                continue
            await self._refresh_count()

    async def _heartbeat_loop(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self.heartbeat_seconds)
            if self._stopped:
                break
            await self.tick()
