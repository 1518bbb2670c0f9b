"""
Persistence module.

SQLite storage for device records and their idle columns.
"""
