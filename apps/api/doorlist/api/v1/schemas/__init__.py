from doorlist.api.v1.schemas.checkin import CheckInIn, CheckInOut
from doorlist.api.v1.schemas.events import (
    EventCreate,
    EventListOut,
    EventOut,
    EventStatsOut,
    EventUpdate,
    HardDeleteOut,
    RestoreOut,
    SmartDeleteIn,
    SmartDeleteOut,
)
from doorlist.api.v1.schemas.guests import (
    CredentialOut,
    GuestCreate,
    GuestListOut,
    GuestOut,
    GuestUpdate,
)

__all__ = [
    "CheckInIn",
    "CheckInOut",
    "CredentialOut",
    "EventCreate",
    "EventListOut",
    "EventOut",
    "EventStatsOut",
    "EventUpdate",
    "GuestCreate",
    "GuestListOut",
    "GuestOut",
    "GuestUpdate",
    "HardDeleteOut",
    "RestoreOut",
    "SmartDeleteIn",
    "SmartDeleteOut",
]
