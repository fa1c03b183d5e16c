# tvcast/models/channel_viewer.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from tvcast.db.base_class import Base


class ChannelViewer(Base):
    """
    Registro de presença: uma linha por sessão de espectador (aba/navegador).

    "Vivo" = last_seen_at dentro do TTL; isso é calculado na leitura, não é
    coluna. Linhas velhas são apagadas de forma preguiçosa no próximo
    registro/contagem do canal.
    """

    __tablename__ = "channel_viewers"
    __table_args__ = (
        Index("ix_channel_viewers_channel_last_seen", "channel_id", "last_seen_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    channel_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("channels.id", ondelete="CASCADE"),
        nullable=False,
    )
    session_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    # preenchido quando o espectador está autenticado
    observer_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    joined_at: Mapped[datetime] = mapped_column(nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(nullable=False)
