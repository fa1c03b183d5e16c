# tvcast/services/viewer_notifications.py
"""
Eventos de espectadores por canal.

- Tópicos por canal:
      viewer-notifications-<channel_id>        "viewer-joined" (TV)
      voice-viewer-notifications-<channel_id>  "viewer-joined" (rádio)
      viewers-<channel_id>                     entrou/saiu (contador)
- NotificationBroker: pub/sub com uma fila por assinante, entrega
  best-effort.
    * padrão (um processo): fan-out em memória;
    * NOTIFICATIONS_MQTT_ENABLED: publish e subscribe passam pelo broker
      MQTT em <prefixo>/<tópico>, então workers diferentes se enxergam.
- OwnerJoinNotifier: lembra dos viewerIds já avisados durante a assinatura;
  cada espectador gera no máximo um aviso, mesmo se reentrar.

Isso é sinal de UX, não a fonte de verdade da contagem (ver presence.py).
"""
from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Iterable, Optional, Set, Type

from asyncio_mqtt import Client as MQTTClient, MqttError
from pydantic import BaseModel, ValidationError

from tvcast.core.config import settings
from tvcast.schemas.notification import ViewerJoinedEvent, ViewerMembershipEvent

logger = logging.getLogger("tvcast.viewer_notifications")

TV_NAMESPACE = "viewer-notifications"
RADIO_NAMESPACE = "voice-viewer-notifications"
MEMBERSHIP_NAMESPACE = "viewers"

NAMESPACES = {
    "tv": TV_NAMESPACE,
    "radio": RADIO_NAMESPACE,
}

# fila de cada assinante; eventos além disso são descartados para ele
SUBSCRIBER_QUEUE_SIZE = 100


def topic_for(channel_id: str, namespace: str = TV_NAMESPACE) -> str:
    return f"{namespace}-{channel_id}"


def membership_topic(channel_id: str) -> str:
    return topic_for(channel_id, MEMBERSHIP_NAMESPACE)


def kind_for_topic(topic: str) -> str:
    return "radio" if topic.startswith(RADIO_NAMESPACE + "-") else "tv"


def event_model_for_topic(topic: str) -> Type[BaseModel]:
    if topic.startswith(MEMBERSHIP_NAMESPACE + "-"):
        return ViewerMembershipEvent
    return ViewerJoinedEvent


def decode_event(topic: str, payload: bytes | str) -> Optional[BaseModel]:
    """
    Payload vindo do MQTT -> evento validado. Qualquer coisa fora do formato
    do tópico é descartada (log), nunca repassada.
    """
    model = event_model_for_topic(topic)
    try:
        return model.model_validate(json.loads(payload))
    except (ValueError, ValidationError):
        logger.warning("Payload inválido descartado no tópico %s: %r", topic, payload)
        return None


@dataclass(frozen=True)
class TopicMessage:
    topic: str
    event: BaseModel


def _mqtt_client() -> MQTTClient:
    return MQTTClient(
        hostname=settings.NOTIFICATIONS_MQTT_HOST,
        port=settings.NOTIFICATIONS_MQTT_PORT,
        username=settings.NOTIFICATIONS_MQTT_USERNAME or None,
        password=settings.NOTIFICATIONS_MQTT_PASSWORD or None,
    )


async def _mqtt_publish_json(topic: str, payload: dict) -> None:
    payload_str = json.dumps(payload, ensure_ascii=False)
    logger.debug("MQTT publish topic=%s payload=%s", topic, payload_str)

    async with _mqtt_client() as client:
        await client.publish(topic, payload_str, qos=0, retain=False)


class NotificationBroker:
    def __init__(self, *, mqtt_enabled: bool | None = None) -> None:
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}
        self.mqtt_enabled = (
            settings.NOTIFICATIONS_MQTT_ENABLED if mqtt_enabled is None else mqtt_enabled
        )

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    @staticmethod
    def mqtt_topic(topic: str) -> str:
        return f"{settings.NOTIFICATIONS_MQTT_TOPIC_PREFIX}/{topic}"

    @asynccontextmanager
    async def subscribe(self, *topics: str) -> AsyncIterator[asyncio.Queue]:
        """
        Assina um ou mais tópicos numa única fila de TopicMessage.

        Com MQTT ligado, só retorna depois que a assinatura no broker está
        feita. A assinatura é desfeita ao sair do contexto.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        for topic in topics:
            self._subscribers.setdefault(topic, set()).add(queue)

        listener: Optional[asyncio.Task] = None
        try:
            if self.mqtt_enabled:
                ready = asyncio.Event()
                listener = asyncio.create_task(
                    self._mqtt_listen(topics, queue, ready),
                    name=f"mqtt_subscribe:{','.join(topics)}",
                )
                await ready.wait()
            yield queue
        finally:
            if listener is not None:
                listener.cancel()
                try:
                    await listener
                except asyncio.CancelledError:
                    pass
            for topic in topics:
                subs = self._subscribers.get(topic)
                if subs is None:
                    continue
                subs.discard(queue)
                if not subs:
                    del self._subscribers[topic]

    async def publish(self, topic: str, event: BaseModel) -> int:
        """
        Publica o evento no tópico e retorna quantas entregas foram feitas em
        memória. Com MQTT ligado quem distribui é o broker (retorna 0); se o
        broker falhar, cai para a entrega local.
        """
        if self.mqtt_enabled:
            mqtt_topic = self.mqtt_topic(topic)
            try:
                await _mqtt_publish_json(mqtt_topic, event.model_dump())
                return 0
            except MqttError:
                logger.warning(
                    "Falha ao publicar %s no MQTT; entregando só neste processo",
                    mqtt_topic,
                    exc_info=True,
                )

        message = TopicMessage(topic=topic, event=event)
        delivered = 0
        for queue in list(self._subscribers.get(topic, ())):
            if self._offer(queue, message):
                delivered += 1
        return delivered

    @staticmethod
    def _offer(queue: asyncio.Queue, message: TopicMessage) -> bool:
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("Fila de assinante cheia no tópico %s; evento descartado", message.topic)
            return False
        return True

    async def _mqtt_listen(
        self,
        topics: Iterable[str],
        queue: asyncio.Queue,
        ready: asyncio.Event,
    ) -> None:
        by_mqtt_topic = {self.mqtt_topic(topic): topic for topic in topics}
        try:
            async with _mqtt_client() as client:
                async with client.unfiltered_messages() as messages:
                    for mqtt_topic in by_mqtt_topic:
                        await client.subscribe(mqtt_topic)
                    ready.set()

                    async for message in messages:
                        topic = by_mqtt_topic.get(message.topic)
                        if topic is None:
                            continue
                        event = decode_event(topic, message.payload)
                        if event is not None:
                            self._offer(queue, TopicMessage(topic=topic, event=event))
        except MqttError:
            logger.warning(
                "Assinatura MQTT caiu (%s)",
                ", ".join(by_mqtt_topic),
                exc_info=True,
            )
        finally:
            ready.set()


@dataclass(frozen=True)
class JoinNotice:
    viewer_id: str
    kind: str
    distinct_viewers: int


class OwnerJoinNotifier:
    """
    Estado do dono do canal enquanto transmite. Os ids nunca saem do conjunto
    durante a vida da assinatura.
    """

    def __init__(self) -> None:
        self.notified: Set[str] = set()

    @property
    def distinct_viewers(self) -> int:
        return len(self.notified)

    def handle(self, message: TopicMessage) -> Optional[JoinNotice]:
        viewer_id = message.event.viewerId
        if viewer_id in self.notified:
            return None
        self.notified.add(viewer_id)
        return JoinNotice(
            viewer_id=viewer_id,
            kind=kind_for_topic(message.topic),
            distinct_viewers=len(self.notified),
        )


broker = NotificationBroker()
