# tvcast/models/channel.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List

from sqlalchemy import Boolean, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tvcast.db.base_class import Base


class Channel(Base):
    """
    Canal (TV ou rádio). Só o mínimo que o núcleo de reprodução precisa:
    a grade de mídia e os espectadores ficam pendurados aqui.
    """

    __tablename__ = "channels"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # "tv" ou "radio"
    channel_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        server_default=text("'tv'"),
    )

    is_live: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("FALSE"),
    )

    created_at: Mapped[datetime] = mapped_column(
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    media_entries: Mapped[List["MediaEntry"]] = relationship(  # noqa: F821
        back_populates="channel",
        order_by="MediaEntry.position",
        cascade="all, delete-orphan",
    )
