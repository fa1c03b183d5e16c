# tvcast/models/media_entry.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tvcast.db.base_class import Base


class MediaEntry(Base):
    """
    Item da grade de um canal.

    Não guarda estado de "tocando agora": a seleção é recalculada a partir do
    relógio a cada avaliação (ver services.schedule_resolver).
    """

    __tablename__ = "media_content"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    channel_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("channels.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    source_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    file_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # None -> o compilador de playlist usa o default (180s)
    duration_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # toca quando nenhuma janela de horário casa ("24/7")
    is_always_on: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("FALSE"),
    )

    # agendamento pontual; não é usado pelas janelas recorrentes
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    # "HH:MM" no fuso de referência
    window_start: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    window_end: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)

    # ordem na grade (ordem de origem: primeira janela que casa vence)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    channel: Mapped["Channel"] = relationship(back_populates="media_entries")  # noqa: F821
