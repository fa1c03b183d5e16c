# tvcast/schemas/notification.py
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ViewerJoinedEvent(BaseModel):
    """
    Payload do evento "viewer-joined" publicado no tópico do canal.

    Validação estrita na borda: chaves extras ou viewerId vazio são rejeitados.
    """

    viewerId: str = Field(..., min_length=1, max_length=128)

    model_config = ConfigDict(extra="forbid", strict=True)


class ViewerJoinedNotification(BaseModel):
    """
    O que o dono do canal recebe pelo WebSocket na primeira entrada de cada
    espectador.
    """

    event: str = "viewer-joined"
    viewerId: str
    kind: str
    distinct_viewers: int


class ViewerMembershipEvent(BaseModel):
    """
    Mudança de presença num canal (sessão entrou ou saiu), publicada pelo
    contador. Quem recebe só reconsulta a contagem.
    """

    change: Literal["joined", "left"]
    session_id: str = Field(..., min_length=1, max_length=64)

    model_config = ConfigDict(extra="forbid", strict=True)