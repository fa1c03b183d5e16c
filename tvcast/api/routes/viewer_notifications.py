# tvcast/api/routes/viewer_notifications.py
import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, WebSocket, status
from pydantic import BaseModel

from tvcast.api.deps import get_notification_broker
from tvcast.api.websocket import pump_until_disconnect
from tvcast.crud import channel as crud_channel
from tvcast.db.session import AsyncSessionLocal
from tvcast.schemas.notification import ViewerJoinedEvent, ViewerJoinedNotification
from tvcast.services.viewer_notifications import (
    NAMESPACES,
    RADIO_NAMESPACE,
    TV_NAMESPACE,
    NotificationBroker,
    OwnerJoinNotifier,
    topic_for,
)

logger = logging.getLogger("tvcast.api.viewer_notifications")

router = APIRouter()


class PublishResult(BaseModel):
    topic: str
    # entregas em memória; com MQTT ligado quem distribui é o broker (0)
    delivered: int


@router.post(
    "/{channel_id}/viewer-notifications",
    response_model=PublishResult,
    status_code=status.HTTP_202_ACCEPTED,
)
async def publish_viewer_joined(
    channel_id: str,
    event: ViewerJoinedEvent,
    namespace: Literal["tv", "radio"] = Query("tv"),
    notifications: NotificationBroker = Depends(get_notification_broker),
):
    """
    Publica "viewer-joined" no tópico do canal. Payload fora do formato
    {"viewerId": "<id>"} é rejeitado com 422.
    """
    topic = topic_for(channel_id, NAMESPACES[namespace])
    delivered = await notifications.publish(topic, event)
    return PublishResult(topic=topic, delivered=delivered)


@router.websocket("/{channel_id}/viewer-notifications/ws")
async def owner_viewer_notifications(
    websocket: WebSocket,
    channel_id: str,
    notifications: NotificationBroker = Depends(get_notification_broker),
):
    """
    Stream para o dono do canal enquanto transmite: um aviso por espectador
    distinto (TV ou rádio), com a contagem distinta atualizada.
    """
    async with AsyncSessionLocal() as db:
        live = await crud_channel.is_live(db, channel_id)

    if not live:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    notifier = OwnerJoinNotifier()
    topics = (topic_for(channel_id, TV_NAMESPACE), topic_for(channel_id, RADIO_NAMESPACE))

    async def send_notice(message) -> None:
        notice = notifier.handle(message)
        if notice is None:
            return
        payload = ViewerJoinedNotification(
            viewerId=notice.viewer_id,
            kind=notice.kind,
            distinct_viewers=notice.distinct_viewers,
        )
        await websocket.send_json(payload.model_dump())

    async with notifications.subscribe(*topics) as queue:
        await pump_until_disconnect(websocket, queue, send_notice)

    logger.info(
        "Dono do canal %s saiu das notificações (%s espectadores distintos)",
        channel_id,
        notifier.distinct_viewers,
    )
