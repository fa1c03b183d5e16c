from tvcast.models.channel import Channel
from tvcast.models.media_entry import MediaEntry
from tvcast.models.channel_viewer import ChannelViewer

__all__ = [
    "Channel",
    "MediaEntry",
    "ChannelViewer",
]
