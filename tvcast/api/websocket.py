# tvcast/api/websocket.py
import asyncio
from typing import Awaitable, Callable, Optional

from fastapi import WebSocket, WebSocketDisconnect


async def pump_until_disconnect(
    websocket: WebSocket,
    queue: asyncio.Queue,
    handle: Callable[[object], Awaitable[None]],
) -> None:
    """
    Entrega cada item da fila para `handle` até o cliente fechar a conexão.

    O cliente não manda nada; só esperamos o fechamento. Erros de `handle`
    (ex.: send_json numa conexão que caiu) sobem para quem chamou, e as
    tarefas internas são sempre canceladas e aguardadas.
    """
    receiver = asyncio.create_task(_wait_disconnect(websocket))
    getter: Optional[asyncio.Task] = None
    try:
        while True:
            getter = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait(
                {getter, receiver},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if receiver in done:
                break
            await handle(getter.result())
    except WebSocketDisconnect:
        pass
    finally:
        tasks = [task for task in (getter, receiver) if task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


async def _wait_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
