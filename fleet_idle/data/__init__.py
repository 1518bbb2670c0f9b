"""
Data ingestion module.

Position, device and event records, JSON position parsing, and the
device cache consulted by the position handlers.
"""
