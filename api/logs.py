"""
Check-in Log API Routes

- GET /logs: Most recent entries, newest first
- POST /logs: Append an entry
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import get_session
from services.log_service import LogRepository
from .errors import database_error
from .schemas import CreateLogRequest, LogRecord, MessageResponse

router = APIRouter(tags=["Logs"])


def get_log_repository(session: AsyncSession = Depends(get_session)) -> LogRepository:
    return LogRepository(session)


@router.get("/logs", response_model=List[LogRecord])
async def list_logs(repo: LogRepository = Depends(get_log_repository)):
    """Get the 100 most recent check-in log entries"""
    try:
        return await repo.list_recent()
    except SQLAlchemyError as e:
        raise database_error("GET /logs", e)


@router.post("/logs", status_code=201, response_model=MessageResponse)
async def create_log(req: CreateLogRequest, repo: LogRepository = Depends(get_log_repository)):
    """
    Append a check-in log entry.

    The timestamp is assigned by the database; `status` is free text.
    """
    if not req.userId or not req.userName or not req.status:
        raise HTTPException(status_code=400, detail="Missing required fields")

    try:
        await repo.create(user_id=req.userId, user_name=req.userName, status=req.status)
    except SQLAlchemyError as e:
        raise database_error("POST /logs", e)

    return MessageResponse(message="Log created")
