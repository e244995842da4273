"""Storage capabilities the messaging core depends on.

Both the MongoDB repositories and the in-memory ones satisfy these protocols,
so services can be wired against either without code changes.
"""
from datetime import datetime
from typing import List, Optional, Protocol, Tuple

from verisponsor.models.user import UserRole
from verisponsor.schemas.chat import Conversation, Message
from verisponsor.schemas.user import User


class MessageRepository(Protocol):

    async def append(
        self,
        conversation_id: str,
        sender_id: str,
        receiver_id: str,
        content: str,
        timestamp: datetime,
        client_message_id: Optional[str] = None,
    ) -> Tuple[Message, bool]:
        """Store a message; returns ``(message, created)``.

        ``created`` is False when ``client_message_id`` matched an existing
        message, which is then returned unchanged.
        """
        ...

    async def find_by_client_id(self, conversation_id: str, client_message_id: str) -> Optional[Message]: ...

    async def list_by_conversation(self, conversation_id: str) -> List[Message]: ...

    async def mark_read(self, conversation_id: str, viewer_id: str) -> int: ...


class ConversationRepository(Protocol):

    async def get(self, conversation_id: str) -> Optional[Conversation]: ...

    async def get_or_create(self, participant_a: str, participant_b: str) -> Conversation: ...

    async def list_for_user(self, user_id: str) -> List[Conversation]: ...

    async def apply_new_message(self, message: Message) -> Conversation: ...

    async def reset_unread(self, conversation_id: str, user_id: str) -> None: ...


class UserRepository(Protocol):

    async def get_user_by_id(self, user_id: str) -> Optional[User]: ...

    async def upsert_user(self, user: User) -> User: ...

    async def list_users(self, role: Optional[UserRole] = None, query: Optional[str] = None) -> List[User]: ...


def pair_key(participant_a: str, participant_b: str) -> str:
    a, b = sorted([participant_a, participant_b])
    return f"{len(a)}:{a}:{b}"
