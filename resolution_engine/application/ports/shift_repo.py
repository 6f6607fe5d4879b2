"""Port interface for shift attendance logs."""

from abc import ABC, abstractmethod
from datetime import datetime

from resolution_engine.domain.entities.shift import ShiftLog


class ShiftRepository(ABC):
    @abstractmethod
    async def open(self, user_id: str, property_id: str, at: datetime) -> ShiftLog:
        ...

    @abstractmethod
    async def close_active(self, user_id: str, property_id: str, at: datetime) -> int:
        """Complete every active shift of the pair; returns how many were closed."""
        ...

    @abstractmethod
    async def get_active(self, user_id: str, property_id: str) -> ShiftLog | None:
        ...
