"""
Idle state data models.

IdleState is a working copy of a device's persisted idle columns. It is
built from the device record at the start of each position evaluation,
mutated by the state machine, and written back only when it changed.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..data.models import Device, Event


class IdleState:
    """Mutable idle snapshot with dirty tracking."""

    def __init__(
        self,
        idle_state: bool = False,
        idle_time: Optional[datetime] = None,
        idle_position_id: int = 0
    ):
        self._idle_state = idle_state
        self._idle_time = idle_time
        self._idle_position_id = idle_position_id
        self._changed = False
        self._event: Optional["Event"] = None

    @classmethod
    def from_device(cls, device: "Device") -> "IdleState":
        """Copy the idle columns of a device record."""
        return cls(
            idle_state=device.idle_state,
            idle_time=device.idle_time,
            idle_position_id=device.idle_position_id,
        )

    def to_device(self, device: "Device") -> None:
        """Write the idle columns back onto a device record."""
        device.idle_state = self._idle_state
        device.idle_time = self._idle_time
        device.idle_position_id = self._idle_position_id

    @property
    def changed(self) -> bool:
        return self._changed

    # Every setter call marks the state dirty, including same-value writes

    @property
    def idle_state(self) -> bool:
        return self._idle_state

    @idle_state.setter
    def idle_state(self, value: bool) -> None:
        self._idle_state = value
        self._changed = True

    @property
    def idle_time(self) -> Optional[datetime]:
        return self._idle_time

    @idle_time.setter
    def idle_time(self, value: Optional[datetime]) -> None:
        self._idle_time = value
        self._changed = True

    @property
    def idle_position_id(self) -> int:
        return self._idle_position_id

    @idle_position_id.setter
    def idle_position_id(self, value: int) -> None:
        self._idle_position_id = value
        self._changed = True

    @property
    def event(self) -> Optional["Event"]:
        """Event produced by the last evaluation, if any."""
        return self._event

    @event.setter
    def event(self, value: Optional["Event"]) -> None:
        self._event = value

    def __repr__(self) -> str:
        return (
            f"IdleState(idle_state={self._idle_state!r}, idle_time={self._idle_time!r}, "
            f"idle_position_id={self._idle_position_id!r}, changed={self._changed!r})"
        )
