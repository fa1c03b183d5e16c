# tvcast/db/base.py
# Importa todos os models para que Base.metadata conheça todas as tabelas
# (usado por init_db e pelo Alembic).
from tvcast.db.base_class import Base  # noqa

from tvcast.models.channel import Channel  # noqa
from tvcast.models.media_entry import MediaEntry  # noqa
from tvcast.models.channel_viewer import ChannelViewer  # noqa

__all__ = [
    "Base",
    "Channel",
    "MediaEntry",
    "ChannelViewer",
]
