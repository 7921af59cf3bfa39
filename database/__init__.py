# Database package
from .connection import Database, DatabaseUnavailableError, build_database_url, get_database, get_session
from .models import Base, User, LogEntry

__all__ = [
    "Database",
    "DatabaseUnavailableError",
    "build_database_url",
    "get_database",
    "get_session",
    "Base",
    "User",
    "LogEntry",
]
