from tvcast.crud.channel import channel
from tvcast.crud.media_entry import media_entry
from tvcast.crud.channel_viewer import channel_viewer

__all__ = [
    "channel",
    "media_entry",
    "channel_viewer",
]
