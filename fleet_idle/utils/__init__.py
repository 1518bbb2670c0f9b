"""
Utility functions module.

Time Semantics:
- Device fix times are ALWAYS authoritative for idle durations
- Wall-clock time is only used for operational timestamps (delivery, storage)
- All datetimes handled by the pipeline are timezone-aware UTC
"""
