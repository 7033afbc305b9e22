from __future__ import annotations

from doorlist.api.v1.schemas.events import SchemaBase


class SweepOut(SchemaBase):
    completed: int
    archived: int
    purged: int
    failed: int
