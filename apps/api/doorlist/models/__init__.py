from doorlist.models.base import Base
from doorlist.models.event import Event
from doorlist.models.guest import Guest

__all__ = ["Base", "Event", "Guest"]
