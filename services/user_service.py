"""
User Repository

Translates user CRUD operations into parameterised SQL against the
`users` table. One statement per operation; the caller owns the session.
"""

import logging
from typing import Dict, List, Optional, Any

from sqlalchemy import select, update, delete, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import User
from utils.descriptor_utils import parse_descriptor, serialize_descriptor

logger = logging.getLogger(__name__)

# Fields a PUT may change, keyed by their wire names
UPDATABLE_FIELDS = {
    "name": "name",
    "rank": "rank",
    "idCard": "id_card",
    "phone": "phone",
    "unit": "unit",
    "photo": "photo",
}


class DuplicateUserError(Exception):
    """Raised when creating a user whose id already exists."""


# MySQL ER_DUP_ENTRY; SQLite reports primary key clashes in the message
MYSQL_DUPLICATE_ENTRY = 1062


def is_duplicate_key_error(exc: IntegrityError) -> bool:
    """True if the IntegrityError is a unique/primary key violation."""
    orig = getattr(exc, "orig", None)
    args = getattr(orig, "args", ())
    if args and args[0] == MYSQL_DUPLICATE_ENTRY:
        return True
    message = str(orig or exc)
    return "UNIQUE constraint failed" in message or "Duplicate entry" in message


class UserRepository:
    """
    Data access for the `users` table.

    Storage errors propagate as SQLAlchemy exceptions; mapping them to
    HTTP responses is left to the routes.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_summaries(self) -> List[Dict[str, Any]]:
        """
        Get all users without their descriptors.

        Returns:
            List of dicts with metadata, photo and a `has_descriptor` flag.
            `descriptor` is always None.
        """
        has_descriptor = case((User.descriptor.is_not(None), True), else_=False)
        stmt = select(
            User.id, User.name, User.rank, User.id_card, User.phone,
            User.unit, User.photo, has_descriptor.label("has_descriptor"),
        )
        result = await self.session.execute(stmt)

        return [
            {
                "id": row.id,
                "name": row.name,
                "rank": row.rank,
                "idCard": row.id_card,
                "phone": row.phone,
                "unit": row.unit,
                "photo": row.photo,
                "has_descriptor": bool(row.has_descriptor),
                "descriptor": None,
            }
            for row in result
        ]

    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Get the full record of a user.

        A stored descriptor that no longer validates is replaced by None
        and logged; the record is still returned.

        Returns:
            Dict with all user fields, or None if not found
        """
        user = await self.session.get(User, user_id)
        if user is None:
            return None

        descriptor = parse_descriptor(user.descriptor)
        if descriptor is None and user.descriptor is not None:
            logger.warning(f"⚠️ Invalid descriptor for user {user.id}")

        return {
            "id": user.id,
            "name": user.name,
            "rank": user.rank,
            "idCard": user.id_card,
            "phone": user.phone,
            "unit": user.unit,
            "photo": user.photo,
            "descriptor": descriptor,
        }

    async def create(
        self,
        user_id: str,
        name: str,
        photo: str,
        rank: str = None,
        id_card: str = None,
        phone: str = None,
        unit: str = None,
        descriptor: Any = None,
    ) -> None:
        """
        Insert a new user.

        Args:
            descriptor: Already validated descriptor (list or JSON text), or None

        Raises:
            DuplicateUserError: If `user_id` already exists
        """
        user = User(
            id=user_id,
            name=name,
            rank=rank,
            id_card=id_card,
            phone=phone,
            unit=unit,
            photo=photo,
            descriptor=serialize_descriptor(descriptor) if descriptor else None,
        )
        self.session.add(user)

        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if not is_duplicate_key_error(e):
                raise
            raise DuplicateUserError(user_id) from e

    async def update(self, user_id: str, changes: Dict[str, Any], descriptor: Any = None) -> bool:
        """
        Update a user, replacing only the fields given a non-null value.

        Args:
            user_id: User to update
            changes: Wire-named fields from the request; None values are skipped
            descriptor: Already validated descriptor, or a falsy value to keep the stored one

        Returns:
            bool: False if no user matched
        """
        values = {
            UPDATABLE_FIELDS[field]: value
            for field, value in changes.items()
            if field in UPDATABLE_FIELDS and value is not None
        }
        if descriptor:
            values["descriptor"] = serialize_descriptor(descriptor)

        if not values:
            # Nothing to write, but a missing user is still a 404
            stmt = select(User.id).where(User.id == user_id)
            return (await self.session.execute(stmt)).first() is not None

        stmt = update(User).where(User.id == user_id).values(**values)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    async def delete(self, user_id: str) -> bool:
        """
        Delete a user by id.

        Returns:
            bool: False if no user matched
        """
        result = await self.session.execute(delete(User).where(User.id == user_id))
        await self.session.commit()
        return result.rowcount > 0
