"""
User API Routes

CRUD endpoints over the `users` table:
- GET /users: List users (descriptors withheld)
- GET /users/{user_id}: Get a user including the descriptor
- POST /users: Register a user
- PUT /users/{user_id}: Update a user
- DELETE /users/{user_id}: Delete a user
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import get_session
from services.user_service import UserRepository, DuplicateUserError
from utils.descriptor_utils import is_valid_descriptor
from .errors import database_error
from .schemas import (
    CreateUserRequest, UpdateUserRequest,
    UserSummary, UserDetail, MessageResponse,
)

router = APIRouter(tags=["Users"])


def get_user_repository(session: AsyncSession = Depends(get_session)) -> UserRepository:
    return UserRepository(session)


@router.get("/users", response_model=List[UserSummary])
async def list_users(repo: UserRepository = Depends(get_user_repository)):
    """
    List all users.

    Only a `has_descriptor` flag is returned; `descriptor` is always null.
    """
    try:
        return await repo.list_summaries()
    except SQLAlchemyError as e:
        raise database_error("GET /users", e)


@router.get("/users/{user_id}", response_model=UserDetail)
async def get_user(user_id: str, repo: UserRepository = Depends(get_user_repository)):
    """
    Get a user by id, including the face descriptor.

    A corrupted stored descriptor is returned as null.
    """
    try:
        user = await repo.get(user_id)
    except SQLAlchemyError as e:
        raise database_error("GET /users/:id", e)

    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/users", status_code=201, response_model=MessageResponse)
async def create_user(req: CreateUserRequest, repo: UserRepository = Depends(get_user_repository)):
    """
    Register a new user.

    `id`, `name` and `photo` are required; `descriptor` must hold exactly
    128 numbers when given.
    """
    if not req.id or not req.name or not req.photo:
        raise HTTPException(status_code=400, detail="Missing required fields")

    if req.descriptor and not is_valid_descriptor(req.descriptor):
        raise HTTPException(status_code=400, detail="Invalid face descriptor format")

    try:
        await repo.create(
            user_id=req.id,
            name=req.name,
            photo=req.photo,
            rank=req.rank or None,
            id_card=req.idCard or None,
            phone=req.phone or None,
            unit=req.unit or None,
            descriptor=req.descriptor,
        )
    except DuplicateUserError:
        raise HTTPException(status_code=409, detail="User ID already exists")
    except SQLAlchemyError as e:
        raise database_error("POST /users", e)

    return MessageResponse(message="User created")


@router.put("/users/{user_id}", response_model=MessageResponse)
async def update_user(
    user_id: str,
    req: UpdateUserRequest,
    repo: UserRepository = Depends(get_user_repository),
):
    """
    Update a user.

    Fields that are omitted or null keep their stored value; a null
    cannot be used to clear a field.
    """
    if req.descriptor and not is_valid_descriptor(req.descriptor):
        raise HTTPException(status_code=400, detail="Invalid face descriptor format")

    changes = req.model_dump(exclude={"descriptor"})
    try:
        updated = await repo.update(user_id, changes, descriptor=req.descriptor)
    except SQLAlchemyError as e:
        raise database_error("PUT /users/:id", e)

    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    return MessageResponse(message="User updated successfully")


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: str, repo: UserRepository = Depends(get_user_repository)):
    """Delete a user by id"""
    try:
        deleted = await repo.delete(user_id)
    except SQLAlchemyError as e:
        raise database_error("DELETE /users/:id", e)

    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")
    return MessageResponse(message="User deleted successfully")
