"""
SQLAlchemy Models for the Face Check-in System

Defines the `users` and `logs` tables.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, func
from sqlalchemy.dialects.mysql import LONGTEXT
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Photos arrive as data URLs, which overflow a plain MySQL TEXT column
LongText = Text().with_variant(LONGTEXT(), "mysql")


class User(Base):
    """
    Users table.

    Stores identity metadata plus the face descriptor used by the
    capturing client for matching.

    Attributes:
        id: Externally supplied identifier (badge or card number)
        name: Display name
        rank, id_card, phone, unit: Optional free-text metadata
        photo: Image URL or embedded image data
        descriptor: 128-d face descriptor serialised as JSON text
    """
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    name = Column(String(100), nullable=False)
    rank = Column(String(50), nullable=True)
    id_card = Column("idCard", String(50), nullable=True)
    phone = Column(String(30), nullable=True)
    unit = Column(String(100), nullable=True)
    photo = Column(LongText, nullable=False)
    descriptor = Column(Text, nullable=True)

    def __repr__(self):
        return f"<User(id='{self.id}', name='{self.name}')>"


class LogEntry(Base):
    """
    Check-in log table.

    Append-only. `user_id` and `user_name` are a snapshot taken when the
    event happened, not a foreign key.
    """
    __tablename__ = "logs"

    log_id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, nullable=False, server_default=func.now(), index=True)
    user_id = Column(String(64), nullable=False)
    user_name = Column(String(100), nullable=False)
    status = Column(String(50), nullable=False)

    def __repr__(self):
        return f"<LogEntry(log_id={self.log_id}, user_id='{self.user_id}', status='{self.status}')>"
