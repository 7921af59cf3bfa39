"""
Log Repository

Append-only access to the `logs` table.
"""

from typing import Dict, List, Any

from sqlalchemy import select, insert
from sqlalchemy.ext.asyncio import AsyncSession

from config import LOG_LIST_LIMIT, LOG_TIMESTAMP_FORMAT
from database.models import LogEntry


class LogRepository:
    """Data access for check-in log entries."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_recent(self, limit: int = LOG_LIST_LIMIT) -> List[Dict[str, Any]]:
        """
        Get the most recent log entries, newest first.

        Args:
            limit: Maximum number of entries

        Returns:
            List of dicts with `timestamp` formatted as YYYY-MM-DD HH:MM:SS
        """
        stmt = (
            select(LogEntry)
            .order_by(LogEntry.timestamp.desc(), LogEntry.log_id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)

        return [
            {
                "log_id": entry.log_id,
                "timestamp": entry.timestamp.strftime(LOG_TIMESTAMP_FORMAT) if entry.timestamp else None,
                "user_id": entry.user_id,
                "user_name": entry.user_name,
                "status": entry.status,
            }
            for entry in result.scalars()
        ]

    async def create(self, user_id: str, user_name: str, status: str) -> None:
        """Append a log entry; the timestamp is assigned by the database."""
        stmt = insert(LogEntry).values(user_id=user_id, user_name=user_name, status=status)
        await self.session.execute(stmt)
        await self.session.commit()
