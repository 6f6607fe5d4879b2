"""ResolverStat entity — a staff member's availability and track record per skill group."""

from dataclasses import dataclass
from datetime import datetime

DEFAULT_FLOOR = 1
DEFAULT_AVG_RESOLUTION_MINUTES = 60.0


@dataclass
class ResolverStat:
    id: int | None
    user_id: str
    property_id: str
    skill_group_id: int | None
    is_available: bool = True
    is_checked_in: bool = False
    current_floor: int = DEFAULT_FLOOR
    total_resolved: int = 0
    avg_resolution_minutes: float = DEFAULT_AVG_RESOLUTION_MINUTES
    last_assigned_at: datetime | None = None
