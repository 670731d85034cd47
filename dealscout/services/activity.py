from typing import Literal, Optional

from dealscout.services.database import Database
from dealscout.services.logger import logger

ActivityAction = Literal["scan_started", "scan_completed", "scan_failed", "scan_aborted"]


class ActivityRecorder:
    """Audit trail of scans. A failed write is logged and never interrupts the scan."""

    def __init__(self, database: Database):
        self.database = database

    async def record(self, action: ActivityAction, details: Optional[str] = None) -> bool:
        try:
            async with self.database.get_connection() as conn:
                await conn.execute(
                    "INSERT INTO activity_log (action, details) VALUES (?, ?)", (action, details)
                )
                await conn.commit()
            return True
        except Exception as e:
            logger.opt(exception=e).warning(f"Failed to record activity {action}: {e}")
            return False

    async def recent(self, limit: int = 50):
        async with self.database.get_connection() as conn:
            cursor = await conn.execute(
                "SELECT action, details, created_at FROM activity_log ORDER BY id DESC LIMIT ?", (limit,)
            )
            return await cursor.fetchall()
