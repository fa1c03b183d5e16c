# tvcast/api/routes/viewers.py
from fastapi import APIRouter, Depends, HTTPException, WebSocket, status
from sqlalchemy.ext.asyncio import AsyncSession

from tvcast.api.deps import get_db_session, get_notification_broker, get_presence_tracker
from tvcast.api.websocket import pump_until_disconnect
from tvcast.crud import channel as crud_channel
from tvcast.db.session import AsyncSessionLocal
from tvcast.schemas.channel_viewer import (
    ViewerCountRead,
    ViewerHeartbeatRead,
    ViewerRegister,
    ViewerRegistered,
)
from tvcast.services.presence import PresenceTracker
from tvcast.services.viewer_notifications import NotificationBroker, membership_topic

router = APIRouter()


@router.post(
    "/{channel_id}/viewers",
    response_model=ViewerRegistered,
    status_code=status.HTTP_201_CREATED,
)
async def register_viewer(
    channel_id: str,
    viewer_in: ViewerRegister,
    db: AsyncSession = Depends(get_db_session),
    tracker: PresenceTracker = Depends(get_presence_tracker),
):
    """
    Registra a sessão (varrendo antes as presenças vencidas do canal).
    Registrar de novo a mesma session_id só atualiza last_seen.
    """
    if not await crud_channel.get(db, id=channel_id):
        raise HTTPException(status_code=404, detail="Channel not found")

    await tracker.register(
        db,
        channel_id=channel_id,
        session_id=viewer_in.session_id,
        observer_id=viewer_in.observer_id,
    )
    count = await tracker.count(db, channel_id=channel_id)
    return ViewerRegistered(session_id=viewer_in.session_id, viewer_count=count)


@router.put("/{channel_id}/viewers/{session_id}/heartbeat", response_model=ViewerHeartbeatRead)
async def viewer_heartbeat(
    channel_id: str,
    session_id: str,
    db: AsyncSession = Depends(get_db_session),
    tracker: PresenceTracker = Depends(get_presence_tracker),
):
    # sessão de outro canal não é tocada (registered=false)
    registered = await tracker.heartbeat(db, session_id=session_id, channel_id=channel_id)
    count = await tracker.count(db, channel_id=channel_id)
    return ViewerHeartbeatRead(registered=registered, viewer_count=count)


@router.get("/{channel_id}/viewers/count", response_model=ViewerCountRead)
async def viewer_count(
    channel_id: str,
    db: AsyncSession = Depends(get_db_session),
    tracker: PresenceTracker = Depends(get_presence_tracker),
):
    count = await tracker.count(db, channel_id=channel_id)
    return ViewerCountRead(channel_id=channel_id, viewer_count=count)


@router.delete("/{channel_id}/viewers/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deregister_viewer(
    channel_id: str,
    session_id: str,
    db: AsyncSession = Depends(get_db_session),
    tracker: PresenceTracker = Depends(get_presence_tracker),
):
    # idempotente: sessão já removida (ou varrida) também responde 204
    await tracker.deregister(db, session_id=session_id)
    return None


@router.websocket("/{channel_id}/viewers/ws")
async def viewer_count_stream(
    websocket: WebSocket,
    channel_id: str,
    tracker: PresenceTracker = Depends(get_presence_tracker),
    notifications: NotificationBroker = Depends(get_notification_broker),
):
    """
    Contagem ao vivo: manda {channel_id, viewer_count} na conexão e de novo a
    cada entrada/saída de sessão no canal.
    """
    await websocket.accept()

    async def send_count(_message=None) -> None:
        async with AsyncSessionLocal() as db:
            count = await tracker.count(db, channel_id=channel_id)
        await websocket.send_json(
            ViewerCountRead(channel_id=channel_id, viewer_count=count).model_dump()
        )

    async with notifications.subscribe(membership_topic(channel_id)) as queue:
        await send_count()
        await pump_until_disconnect(websocket, queue, send_count)
