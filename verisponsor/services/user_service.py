from typing import List, Optional

from loguru import logger

from verisponsor.exceptions import UserNotFoundError
from verisponsor.repositories.base import UserRepository
from verisponsor.schemas.user import Identity, User, UserUpdate


OTHER_ROLE = {"sponsor": "youtuber", "youtuber": "sponsor"}


class UserService:
    """Directory of marketplace users known to the messaging backend."""

    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    async def register_user(self, identity: Identity, profile: UserUpdate) -> User:
        """
        Create or refresh the caller's directory record.
        Role and verification always come from the identity, never from the body.
        """
        user = User(
            id=identity.id,
            role=identity.role,
            is_verified=identity.is_verified,
            **profile.model_dump(),
        )
        await self.user_repository.upsert_user(user)
        logger.info("Registered {} user {}", user.role, user.id)
        return user

    async def get_user(self, user_id: str) -> User:
        user = await self.user_repository.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def discover(self, identity: Identity, query: Optional[str] = None, sort: Optional[str] = None) -> List[User]:
        """Profiles a caller can start a conversation with: users of the other role."""
        other_role = OTHER_ROLE[identity.role]
        users = await self.user_repository.list_users(role=other_role, query=(query or "").strip() or None)
        if sort == "verified":
            # stable, so name order holds within each group
            users.sort(key=lambda u: not u.is_verified)
        return users
