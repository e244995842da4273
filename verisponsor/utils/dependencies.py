from typing import Mapping, Optional, Tuple

from fastapi import Header, HTTPException, status
from pydantic import ValidationError

from verisponsor.config import get_settings
from verisponsor.database.connection import get_database
from verisponsor.repositories.conversation_repository import MongoConversationRepository
from verisponsor.repositories.memory import InMemoryStore
from verisponsor.repositories.message_repository import MongoMessageRepository
from verisponsor.repositories.user_repository import MongoUserRepository
from verisponsor.schemas.user import Identity
from verisponsor.services.chat_service import ChatService
from verisponsor.services.user_service import UserService
from verisponsor.utils.locks import get_locks


USER_ID_HEADER = "x-user-id"
USER_ROLE_HEADER = "x-user-role"
USER_VERIFIED_HEADER = "x-user-verified"

_memory_store: Optional[InMemoryStore] = None


def get_memory_store() -> InMemoryStore:
    global _memory_store
    if _memory_store is None:
        _memory_store = InMemoryStore()
    return _memory_store


def get_repositories() -> Tuple:
    if get_settings().uses_mongo:
        db = get_database()
        return MongoMessageRepository(db), MongoConversationRepository(db), MongoUserRepository(db)
    store = get_memory_store()
    return store.messages, store.conversations, store.users


def get_chat_service() -> ChatService:
    message_repo, conversation_repo, user_repo = get_repositories()
    return ChatService(message_repo, conversation_repo, user_repo, locks=get_locks())


def get_user_service() -> UserService:
    _, _, user_repo = get_repositories()
    return UserService(user_repo)


def identity_from_headers(headers: Mapping[str, str]) -> Identity:
    """Build the caller identity set by the upstream auth gateway."""
    user_id = headers.get(USER_ID_HEADER)
    role = headers.get(USER_ROLE_HEADER)
    if not user_id or not role:
        raise ValueError("Missing identity headers")
    verified = (headers.get(USER_VERIFIED_HEADER) or "false").strip().lower() in {"1", "true", "yes"}
    try:
        return Identity(id=user_id.strip(), role=role.strip().lower(), is_verified=verified)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
    x_user_verified: Optional[str] = Header(default=None),
) -> Identity:
    headers = {
        USER_ID_HEADER: x_user_id or "",
        USER_ROLE_HEADER: x_user_role or "",
        USER_VERIFIED_HEADER: x_user_verified or "",
    }
    try:
        return identity_from_headers(headers)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
