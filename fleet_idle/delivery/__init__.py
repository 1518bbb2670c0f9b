"""
Event delivery module.

Writes detected events to stdout or JSONL files.
"""
