# scripts/simulate_viewers.py
"""
Simula espectadores de um canal contra a API (registro, heartbeat, contagem,
saída) e publica um "viewer-joined" por espectador.

    python scripts/simulate_viewers.py --channel <id> --viewers 5
"""
import argparse
import asyncio
import os
import random

import httpx

from tvcast.services.presence import ViewerSession

API_BASE_URL = os.getenv("TVCAST_API_URL", "http://localhost:8000")


class HttpPresenceStore:
    """PresenceStore falando com as rotas /api/v1/channels/{id}/viewers."""

    def __init__(self, client: httpx.AsyncClient, channel_id: str) -> None:
        self.client = client
        self.channel_id = channel_id

    def _url(self, suffix: str = "") -> str:
        return f"/api/v1/channels/{self.channel_id}/viewers{suffix}"

    async def register(self, channel_id: str, session_id: str, observer_id: str | None) -> None:
        r = await self.client.post(
            self._url(),
            json={"session_id": session_id, "observer_id": observer_id},
        )
        r.raise_for_status()

    async def heartbeat(self, session_id: str) -> bool:
        r = await self.client.put(self._url(f"/{session_id}/heartbeat"))
        r.raise_for_status()
        return bool(r.json()["registered"])

    async def count(self, channel_id: str) -> int:
        r = await self.client.get(self._url("/count"))
        r.raise_for_status()
        return int(r.json()["viewer_count"])

    async def deregister(self, session_id: str) -> None:
        r = await self.client.delete(self._url(f"/{session_id}"))
        r.raise_for_status()


async def run_viewer(
    client: httpx.AsyncClient,
    channel_id: str,
    *,
    idx: int,
    heartbeat_seconds: float,
    watch_seconds: float,
    radio: bool,
) -> None:
    store = HttpPresenceStore(client, channel_id)
    session = ViewerSession(store, channel_id, heartbeat_seconds=heartbeat_seconds)
    await session.start()

    namespace = "radio" if radio else "tv"
    await client.post(
        f"/api/v1/channels/{channel_id}/viewer-notifications",
        params={"namespace": namespace},
        json={"viewerId": session.session_id},
    )
    print(f"[viewer {idx}] entrou session={session.session_id} contagem={session.displayed_count}")

    try:
        await asyncio.sleep(watch_seconds)
    finally:
        print(f"[viewer {idx}] saindo contagem={session.displayed_count}")
        await session.stop()


async def main(args: argparse.Namespace) -> None:
    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=10) as client:
        await asyncio.gather(
            *(
                run_viewer(
                    client,
                    args.channel,
                    idx=i,
                    heartbeat_seconds=args.heartbeat_seconds,
                    watch_seconds=random.uniform(args.min_watch, args.max_watch),
                    radio=args.radio,
                )
                for i in range(args.viewers)
            )
        )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simula espectadores de um canal.")
    parser.add_argument("--channel", required=True, help="Id do canal")
    parser.add_argument("--viewers", type=int, default=3)
    parser.add_argument("--heartbeat-seconds", type=float, default=20.0)
    parser.add_argument("--min-watch", type=float, default=30.0)
    parser.add_argument("--max-watch", type=float, default=120.0)
    parser.add_argument("--radio", action="store_true", help="Publica no tópico de rádio")
    return parser.parse_args()


if __name__ == "__main__":
    asyncio.run(main(parse_args()))
