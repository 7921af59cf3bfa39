"""
Pydantic Schemas for API Request/Response Models
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Any


# ==================== Request Models ====================

class RequestModel(BaseModel):
    """Base for request bodies: ids and phone numbers may arrive as JSON numbers"""
    model_config = ConfigDict(coerce_numbers_to_str=True)


class CreateUserRequest(RequestModel):
    """
    Request for registering a user.

    Required fields are checked in the route so that a missing or empty
    value gets the same 400 response.
    """
    id: Optional[str] = Field(None, description="Unique user identifier (badge or card number)")
    name: Optional[str] = None
    rank: Optional[str] = None
    idCard: Optional[str] = None
    phone: Optional[str] = None
    unit: Optional[str] = None
    photo: Optional[str] = Field(None, description="Image URL or data URL")
    descriptor: Optional[Any] = Field(None, description="128 numbers, as a list or JSON text")


class UpdateUserRequest(RequestModel):
    """Request for updating a user; null or omitted fields keep their stored value"""
    name: Optional[str] = None
    rank: Optional[str] = None
    idCard: Optional[str] = None
    phone: Optional[str] = None
    unit: Optional[str] = None
    photo: Optional[str] = None
    descriptor: Optional[Any] = None


class CreateLogRequest(RequestModel):
    """Request for appending a check-in log entry"""
    userId: Optional[str] = None
    userName: Optional[str] = None
    status: Optional[str] = Field(None, description="Outcome label, e.g. success/failure")


# ==================== Response Models ====================

class UserSummary(BaseModel):
    """User as listed; the descriptor itself is never sent"""
    id: str
    name: str
    rank: Optional[str] = None
    idCard: Optional[str] = None
    phone: Optional[str] = None
    unit: Optional[str] = None
    photo: Optional[str] = None
    has_descriptor: bool
    descriptor: None = None


class UserDetail(BaseModel):
    """Full user record"""
    id: str
    name: str
    rank: Optional[str] = None
    idCard: Optional[str] = None
    phone: Optional[str] = None
    unit: Optional[str] = None
    photo: Optional[str] = None
    descriptor: Optional[List[float]] = None


class LogRecord(BaseModel):
    """Check-in log entry"""
    log_id: int
    timestamp: Optional[str] = None
    user_id: str
    user_name: str
    status: str


class MessageResponse(BaseModel):
    """Acknowledgement for write endpoints"""
    message: str


# ==================== Health Check ====================

class HealthResponse(BaseModel):
    """API health check response"""
    status: str
