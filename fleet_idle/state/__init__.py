"""
Idle state machine module.

Working snapshot of a device's idle columns and the transition function
that advances it for each new position.
"""
