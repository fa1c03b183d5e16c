# scripts/sweep_stale_viewers.py
"""
Varredura periódica opcional de presenças vencidas.

O contador já remove linhas vencidas de forma preguiçosa a cada registro ou
contagem do canal; este script só limita o tamanho da tabela para canais que
ninguém mais abriu (cron / systemd timer).
"""
import argparse
import asyncio

from tvcast.core.config import settings
from tvcast.db.session import AsyncSessionLocal
from tvcast.services.presence import PresenceTracker


async def sweep(*, ttl_seconds: int) -> int:
    tracker = PresenceTracker(ttl_seconds=ttl_seconds)
    async with AsyncSessionLocal() as session:
        removed = await tracker.sweep(session)
    print(f"[sweep-viewers] ttl_seconds={ttl_seconds} removed={removed}")
    return removed


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove presenças de espectadores vencidas.")
    parser.add_argument(
        "--ttl-seconds",
        type=int,
        default=settings.PRESENCE_TTL_SECONDS,
        help="Idade máxima de last_seen_at (default: PRESENCE_TTL_SECONDS).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    asyncio.run(sweep(ttl_seconds=args.ttl_seconds))


if __name__ == "__main__":
    main()
