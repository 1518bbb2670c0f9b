"""
Core idle detection state machine.

A device is idle while it is not moving and its ignition is on. Idle
periods are only reported once they end: leaving idle after at least the
minimal duration produces a single deviceIdleStart event that carries the
onset time and the elapsed duration. Shorter periods are discarded.
"""

from typing import Optional

from ..data.models import Event, Position
from ..errors import MalformedDataError
from ..logging.config import get_state_logger, log_state_transition
from ..utils.time import duration_ms, format_timestamp
from .models import IdleState

state_logger = get_state_logger(__name__)


def _label(idle: bool) -> str:
    return "idle" if idle else "not_idle"


def is_idle(position: Position) -> bool:
    """Idle condition: not moving and ignition on."""
    motion = position.get_boolean(Position.KEY_MOTION)
    ignition = position.get_boolean(Position.KEY_IGNITION)
    return not motion and ignition


def update_idle_state(
    state: IdleState,
    position: Position,
    minimal_idle_duration: int
) -> Optional[Event]:
    """
    Advance a device's idle state with a new position.

    Args:
        state: Idle snapshot of the device before this position (mutated)
        position: Latest validated position for the device
        minimal_idle_duration: Minimal reportable idle duration in milliseconds

    Returns:
        The event stored on state.event, or None

    Raises:
        MalformedDataError: If the position has no fix time but one is needed
    """
    state.event = None

    currently_idle = is_idle(position)
    previously_idle = state.idle_state

    # Onset records the fix time; closing an open segment measures against it
    needs_fix_time = (
        (currently_idle and not previously_idle)
        or (not currently_idle and state.idle_time is not None)
    )
    if needs_fix_time and position.fix_time is None:
        raise MalformedDataError(
            "Position fix time is required to update idle state",
            context={"device_id": position.device_id, "position_id": position.id}
        )

    if previously_idle == currently_idle:
        if state.idle_time is not None and not previously_idle:
            _close_stray_segment(state, position, minimal_idle_duration)
        # Still idling: the event is produced when idling stops
        return state.event

    state.idle_state = currently_idle

    if currently_idle:
        state.idle_position_id = position.id
        state.idle_time = position.fix_time

        log_state_transition(
            state_logger,
            device_id=position.device_id,
            from_state=_label(previously_idle),
            to_state=_label(currently_idle),
            trigger="idle_onset",
            context={
                "position_id": position.id,
                "fix_time": format_timestamp(position.fix_time)
            }
        )
    elif state.idle_time is not None:
        duration = duration_ms(state.idle_time, position.fix_time)

        if duration >= minimal_idle_duration:
            state.event = _create_event(
                Event.TYPE_DEVICE_IDLE_START, state, position, duration
            )

        log_state_transition(
            state_logger,
            device_id=position.device_id,
            from_state=_label(previously_idle),
            to_state=_label(currently_idle),
            trigger="idle_resolved",
            context={
                "idle_position_id": state.idle_position_id,
                "idle_time": format_timestamp(state.idle_time),
                "duration_ms": duration,
                "minimal_duration_ms": minimal_idle_duration,
                "reported": state.event is not None
            }
        )

        state.idle_position_id = 0
        state.idle_time = None
    else:
        log_state_transition(
            state_logger,
            device_id=position.device_id,
            from_state=_label(previously_idle),
            to_state=_label(currently_idle),
            trigger="idle_resolved",
            context={"open_segment": False}
        )

    return state.event


def _close_stray_segment(
    state: IdleState,
    position: Position,
    minimal_idle_duration: int
) -> None:
    """
    Clear an idle segment left open on a device that is not idle.

    Only reachable when the persisted columns were modified outside this
    state machine; normal transitions never leave idle_time set while not idle.
    """
    duration = duration_ms(state.idle_time, position.fix_time)

    if duration >= minimal_idle_duration:
        state.event = _create_event(
            Event.TYPE_DEVICE_IDLE_END, state, position, duration
        )

    state_logger.warning(
        "Cleared open idle segment on non-idle device",
        device_id=position.device_id,
        idle_position_id=state.idle_position_id,
        idle_time=format_timestamp(state.idle_time),
        duration_ms=duration,
        reported=state.event is not None
    )

    state.idle_position_id = 0
    state.idle_time = None


def _create_event(
    event_type: str,
    state: IdleState,
    position: Position,
    duration: int
) -> Event:
    event = Event(type=event_type, device_id=position.device_id)
    event.position_id = state.idle_position_id
    event.event_time = state.idle_time
    event.set("duration", duration)
    return event
