# tvcast/services/availability.py
"""
Cache de disponibilidade de fontes de stream + busca via proxy.

O player pergunta se a URL responde (HEAD, timeout de 5s) para decidir entre
tocar direto ou passar pelo proxy. O resultado fica em cache por 60s; entradas
vencidas são tratadas como ausentes (nova sonda), nunca removidas ativamente.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional
from urllib.parse import urlsplit

import httpx

from tvcast.core.config import settings

logger = logging.getLogger("tvcast.availability")


@dataclass
class AvailabilityEntry:
    available: bool
    checked_at: float


class UpstreamError(RuntimeError):
    """Falha ao buscar a fonte original (status HTTP quando houver)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class UpstreamResponse:
    content: bytes
    content_type: str


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def outbound_headers(url: str) -> Dict[str, str]:
    """
    Identidade fixa usada para falar com as fontes (algumas recusam clientes
    sem cara de navegador).
    """
    origin = _origin(url)
    return {
        "User-Agent": settings.PROXY_USER_AGENT,
        "Accept": "*/*",
        "Accept-Language": settings.PROXY_ACCEPT_LANGUAGE,
        "Referer": origin,
        "Origin": origin,
    }


class AvailabilityCache:
    """
    Cache por processo, chaveado pela URL. Relógio e TTL injetáveis para os
    testes; sem deduplicação de sondas concorrentes da mesma URL.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        ttl_seconds: float | None = None,
        check_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.ttl = ttl_seconds if ttl_seconds is not None else settings.AVAILABILITY_CACHE_TTL_SECONDS
        self.check_timeout = (
            check_timeout if check_timeout is not None else settings.AVAILABILITY_CHECK_TIMEOUT_SECONDS
        )
        self.clock = clock
        self._entries: Dict[str, AvailabilityEntry] = {}

    def _fresh(self, url: str) -> Optional[AvailabilityEntry]:
        entry = self._entries.get(url)
        if entry is None:
            return None
        if self.clock() - entry.checked_at >= self.ttl:
            return None
        return entry

    def is_cached(self, url: str) -> bool:
        return self._fresh(url) is not None

    async def check(self, url: str) -> bool:
        entry = self._fresh(url)
        if entry is not None:
            return entry.available

        available = await self._head_ok(url)
        self._entries[url] = AvailabilityEntry(available=available, checked_at=self.clock())
        return available

    async def _head_ok(self, url: str) -> bool:
        try:
            resp = await self.client.head(
                url,
                headers=outbound_headers(url),
                timeout=self.check_timeout,
                follow_redirects=True,
            )
        except httpx.TimeoutException:
            logger.info("Sonda de disponibilidade estourou o timeout: %s", url)
            return False
        except httpx.HTTPError as exc:
            logger.info("Sonda de disponibilidade falhou para %s: %s", url, exc)
            return False

        return 200 <= resp.status_code < 300


async def fetch_upstream(client: httpx.AsyncClient, url: str) -> UpstreamResponse:
    """
    Busca o recurso inteiro na fonte com a identidade fixa.

    Status não-2xx -> UpstreamError(status_code); erro de rede -> UpstreamError
    sem status.
    """
    try:
        resp = await client.get(url, headers=outbound_headers(url), follow_redirects=True)
    except httpx.HTTPError as exc:
        logger.warning("Proxy: falha de rede buscando %s: %s", url, exc)
        raise UpstreamError("Upstream fetch failed") from exc

    if not resp.is_success:
        logger.warning("Proxy: fonte respondeu %s para %s", resp.status_code, url)
        raise UpstreamError(
            f"Upstream responded with status {resp.status_code}",
            status_code=resp.status_code,
        )

    content_type = resp.headers.get("content-type") or "application/octet-stream"
    return UpstreamResponse(content=resp.content, content_type=content_type)
