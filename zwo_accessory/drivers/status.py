"""
Outcome of a device position query.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StatusKind(Enum):
    SETTLED = "settled"
    MOVING = "moving"
    FATAL = "fatal"


@dataclass(frozen=True)
class DeviceStatus:
    """
    Tri-state result of get_position().

    Attributes:
        kind: Settled, moving or fatal.
        value: Settled position/slot. For a moving focuser, the position
            read in the same frame (progress only, not authoritative).
        extra: Focuser maximum position, or the wheel's reported slot count.
        error: Exception describing a fatal status.
    """
    kind: StatusKind
    value: Optional[int] = None
    extra: Optional[int] = None
    error: Optional[Exception] = None

    @classmethod
    def settled(cls, value: int, extra: Optional[int] = None) -> "DeviceStatus":
        return cls(StatusKind.SETTLED, value=value, extra=extra)

    @classmethod
    def moving(cls, value: Optional[int] = None, extra: Optional[int] = None) -> "DeviceStatus":
        return cls(StatusKind.MOVING, value=value, extra=extra)

    @classmethod
    def fatal(cls, error: Exception) -> "DeviceStatus":
        return cls(StatusKind.FATAL, error=error)

    @property
    def is_settled(self) -> bool:
        return self.kind is StatusKind.SETTLED

    @property
    def is_moving(self) -> bool:
        return self.kind is StatusKind.MOVING

    @property
    def is_fatal(self) -> bool:
        return self.kind is StatusKind.FATAL

    def __str__(self) -> str:
        if self.is_fatal:
            return f"Fatal({self.error})"
        if self.is_settled:
            return f"Settled({self.value}, {self.extra})"
        return "Moving"
