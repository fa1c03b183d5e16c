from tvcast.schemas.media_entry import (
    MediaEntryBase,
    MediaEntryCreate,
    MediaEntryRead,
)
from tvcast.schemas.channel_viewer import (
    ViewerRegister,
    ViewerRegistered,
    ViewerHeartbeatRead,
    ViewerCountRead,
)
from tvcast.schemas.schedule import ScheduleSelectionRead
from tvcast.schemas.proxy import ProxyRequest, AvailabilityRead
from tvcast.schemas.notification import (
    ViewerJoinedEvent,
    ViewerJoinedNotification,
    ViewerMembershipEvent,
)

__all__ = [
    "MediaEntryBase",
    "MediaEntryCreate",
    "MediaEntryRead",
    "ViewerRegister",
    "ViewerRegistered",
    "ViewerHeartbeatRead",
    "ViewerCountRead",
    "ScheduleSelectionRead",
    "ProxyRequest",
    "AvailabilityRead",
    "ViewerJoinedEvent",
    "ViewerJoinedNotification",
    "ViewerMembershipEvent",
]
