"""Device persistence layer with partial-column updates."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence

import structlog

from ..data.models import Device
from ..errors import StorageError
from ..utils.time import format_timestamp, parse_timestamp

# Device attribute name -> column name
COLUMNS = {
    "id": "id",
    "name": "name",
    "unique_id": "unique_id",
    "attributes": "attributes",
    "idle_state": "idle_state",
    "idle_time": "idle_time",
    "idle_position_id": "idle_position_id",
}


class DeviceStore:
    """SQLite-based device storage."""

    def __init__(self, db_path: str = "devices.db", timeout: float = 30.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.logger = structlog.get_logger("device.store")
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS devices (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL DEFAULT '',
                    unique_id TEXT NOT NULL DEFAULT '',
                    attributes TEXT NOT NULL DEFAULT '{}',
                    idle_state INTEGER NOT NULL DEFAULT 0,
                    idle_time TEXT,
                    idle_position_id INTEGER NOT NULL DEFAULT 0
                )
            """)

            conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_devices_unique_id
                ON devices(unique_id) WHERE unique_id != ''
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", error=str(e))
            raise
        finally:
            if conn:
                conn.close()

    def _to_column_value(self, column: str, value: Any) -> Any:
        if column == "attributes":
            return json.dumps(value or {})
        if column == "idle_state":
            return 1 if value else 0
        if isinstance(value, datetime):
            return format_timestamp(value)
        return value

    def add_device(self, device: Device) -> None:
        """
        Insert or replace a device row.

        Raises:
            StorageError: If the row cannot be written
        """
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute("""
                        INSERT OR REPLACE INTO devices (
                            id, name, unique_id, attributes,
                            idle_state, idle_time, idle_position_id
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """, tuple(
                        self._to_column_value(column, getattr(device, field))
                        for field, column in COLUMNS.items()
                    ))
                    conn.commit()
            except sqlite3.Error as e:
                raise StorageError(
                    f"Failed to store device {device.id}: {e}",
                    operation="insert",
                    target="devices"
                ) from e

        self.logger.info("Device stored", device_id=device.id)

    def update_object(
        self,
        device: Device,
        columns: Sequence[str],
        condition: dict[str, Any]
    ) -> None:
        """
        Update only the given columns of the rows matching condition.

        Args:
            device: Device record supplying the new values
            columns: Device attribute names to write
            condition: Equality condition, e.g. {"id": device.id}

        Raises:
            StorageError: If the update fails or no row matches
        """
        unknown = [name for name in list(columns) + list(condition) if name not in COLUMNS]
        if unknown or not columns or not condition:
            raise StorageError(
                f"Invalid device update request: columns={list(columns)}, condition={condition}",
                operation="update",
                target="devices"
            )

        assignments = ", ".join(f"{COLUMNS[name]} = ?" for name in columns)
        where = " AND ".join(f"{COLUMNS[name]} = ?" for name in condition)
        params = [self._to_column_value(COLUMNS[name], getattr(device, name)) for name in columns]
        params.extend(condition.values())

        with self._lock:
            try:
                with self._get_connection() as conn:
                    cursor = conn.execute(
                        f"UPDATE devices SET {assignments} WHERE {where}", params
                    )
                    conn.commit()
                    updated = cursor.rowcount
            except sqlite3.Error as e:
                raise StorageError(
                    f"Failed to update device {device.id}: {e}",
                    operation="update",
                    target="devices"
                ) from e

        if updated == 0:
            raise StorageError(
                f"No device row matched {condition}",
                operation="update",
                target="devices"
            )

        self.logger.debug(
            "Device columns updated",
            device_id=device.id,
            columns=list(columns)
        )

    def get_device(self, device_id: int) -> Optional[Device]:
        """Get a device by ID."""
        try:
            with self._get_connection() as conn:
                row = conn.execute("""
                    SELECT * FROM devices WHERE id = ?
                """, (device_id,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to get device {device_id}: {e}",
                operation="select",
                target="devices"
            ) from e

        if row:
            return self._row_to_device(row)
        return None

    def get_devices(self) -> list[Device]:
        """Get all devices ordered by ID."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute("""
                    SELECT * FROM devices ORDER BY id
                """).fetchall()
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to list devices: {e}",
                operation="select",
                target="devices"
            ) from e

        return [self._row_to_device(row) for row in rows]

    def delete_device(self, device_id: int) -> bool:
        """Delete a device, returning True if a row was removed."""
        with self._lock:
            try:
                with self._get_connection() as conn:
                    cursor = conn.execute("DELETE FROM devices WHERE id = ?", (device_id,))
                    conn.commit()
                    return cursor.rowcount > 0
            except sqlite3.Error as e:
                raise StorageError(
                    f"Failed to delete device {device_id}: {e}",
                    operation="delete",
                    target="devices"
                ) from e

    def _row_to_device(self, row: sqlite3.Row) -> Device:
        """Convert database row to Device."""
        return Device(
            id=row["id"],
            name=row["name"],
            unique_id=row["unique_id"],
            attributes=json.loads(row["attributes"] or "{}"),
            idle_state=bool(row["idle_state"]),
            idle_time=parse_timestamp(row["idle_time"]),
            idle_position_id=row["idle_position_id"],
        )
