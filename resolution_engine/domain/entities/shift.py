"""ShiftLog entity — attendance record opened on check-in, closed on check-out."""

from dataclasses import dataclass
from datetime import datetime

from resolution_engine.domain.value_objects.enums import ShiftStatus


@dataclass
class ShiftLog:
    id: int | None
    user_id: str
    property_id: str
    status: ShiftStatus
    check_in_at: datetime
    check_out_at: datetime | None = None
