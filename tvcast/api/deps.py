# tvcast/api/deps.py
from collections.abc import AsyncGenerator

import httpx
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from tvcast.db.session import AsyncSessionLocal
from tvcast.services.availability import AvailabilityCache
from tvcast.services.presence import PresenceTracker
from tvcast.services.viewer_notifications import NotificationBroker, broker


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Client HTTP compartilhado do processo (criado no startup; criado sob
    demanda se o startup não rodou, ex.: testes com ASGITransport).
    """
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        client = httpx.AsyncClient()
        request.app.state.http_client = client
    return client


def get_availability_cache(request: Request) -> AvailabilityCache:
    cache = getattr(request.app.state, "availability_cache", None)
    if cache is None:
        cache = AvailabilityCache(get_http_client(request))
        request.app.state.availability_cache = cache
    return cache


def get_presence_tracker() -> PresenceTracker:
    return PresenceTracker(events=broker)


def get_notification_broker() -> NotificationBroker:
    return broker
