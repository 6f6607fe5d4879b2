"""ActivityLogEntry — immutable fact about one lifecycle transition."""

from dataclasses import dataclass
from datetime import datetime

from resolution_engine.domain.value_objects.enums import ActivityAction


@dataclass(frozen=True)
class ActivityLogEntry:
    ticket_id: int
    user_id: str
    action: ActivityAction
    old_value: str | None
    new_value: str | None
    created_at: datetime
    id: int | None = None
