"""In-memory repositories used by tests and the ``memory`` storage backend.

Every method completes without awaiting, so each call is atomic with respect
to other coroutines on the event loop. Returned models are copies: callers
never hold references into the store.
"""
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from verisponsor.repositories.base import pair_key
from verisponsor.schemas.chat import Conversation, Message
from verisponsor.models.user import UserRole
from verisponsor.schemas.user import User


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryMessageRepository:

    def __init__(self) -> None:
        self._messages: Dict[str, List[Message]] = {}

    async def append(
        self,
        conversation_id: str,
        sender_id: str,
        receiver_id: str,
        content: str,
        timestamp: datetime,
        client_message_id: Optional[str] = None,
    ) -> Tuple[Message, bool]:
        if client_message_id:
            existing = self._find_by_client_id(conversation_id, client_message_id)
            if existing:
                return existing, False
        message = Message(
            id=_new_id(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            timestamp=timestamp,
            read=False,
            client_message_id=client_message_id,
        )
        self._messages.setdefault(conversation_id, []).append(message)
        return message, True

    async def find_by_client_id(self, conversation_id: str, client_message_id: str) -> Optional[Message]:
        return self._find_by_client_id(conversation_id, client_message_id)

    def _find_by_client_id(self, conversation_id: str, client_message_id: str) -> Optional[Message]:
        for message in self._messages.get(conversation_id, []):
            if message.client_message_id == client_message_id:
                return message
        return None

    async def list_by_conversation(self, conversation_id: str) -> List[Message]:
        # sorted() is stable: equal timestamps keep append order
        return sorted(self._messages.get(conversation_id, []), key=lambda m: m.timestamp)

    async def mark_read(self, conversation_id: str, viewer_id: str) -> int:
        messages = self._messages.get(conversation_id, [])
        updated = 0
        for index, message in enumerate(messages):
            if message.receiver_id == viewer_id and not message.read:
                messages[index] = message.model_copy(update={"read": True})
                updated += 1
        return updated


class InMemoryConversationRepository:

    def __init__(self) -> None:
        self._conversations: Dict[str, Conversation] = {}
        self._by_pair: Dict[str, str] = {}

    async def get(self, conversation_id: str) -> Optional[Conversation]:
        convo = self._conversations.get(conversation_id)
        return convo.model_copy(deep=True) if convo else None

    async def get_or_create(self, participant_a: str, participant_b: str) -> Conversation:
        key = pair_key(participant_a, participant_b)
        existing_id = self._by_pair.get(key)
        if existing_id:
            return self._conversations[existing_id].model_copy(deep=True)
        participants = sorted([participant_a, participant_b])
        convo = Conversation(
            id=_new_id(),
            participants=participants,
            unread_counters={p: 0 for p in participants},
            created_at=datetime.now(timezone.utc),
        )
        self._conversations[convo.id] = convo
        self._by_pair[key] = convo.id
        return convo.model_copy(deep=True)

    async def list_for_user(self, user_id: str) -> List[Conversation]:
        items = [c for c in self._conversations.values() if c.has_participant(user_id)]
        # newest creation first, then a stable sort by last activity with empty threads last
        items.sort(key=lambda c: c.created_at, reverse=True)
        items.sort(key=lambda c: (c.last_message_at is not None, c.last_message_at or c.created_at), reverse=True)
        return [c.model_copy(deep=True) for c in items]

    async def apply_new_message(self, message: Message) -> Conversation:
        convo = self._conversations[message.conversation_id]
        convo.last_message = message
        convo.last_message_at = message.timestamp
        convo.unread_counters[message.receiver_id] = convo.unread_counters.get(message.receiver_id, 0) + 1
        return convo.model_copy(deep=True)

    async def reset_unread(self, conversation_id: str, user_id: str) -> None:
        convo = self._conversations.get(conversation_id)
        if convo is None:
            return
        convo.unread_counters[user_id] = 0
        # keep the cached last message in step with the message store
        last = convo.last_message
        if last is not None and last.receiver_id == user_id and not last.read:
            convo.last_message = last.model_copy(update={"read": True})


class InMemoryUserRepository:

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def upsert_user(self, user: User) -> User:
        self._users[user.id] = user.model_copy()
        return user

    async def list_users(self, role: Optional[UserRole] = None, query: Optional[str] = None) -> List[User]:
        needle = query.casefold() if query else None
        users = [
            u for u in self._users.values()
            if (role is None or u.role == role) and (needle is None or needle in u.name.casefold())
        ]
        users.sort(key=lambda u: (u.name, u.id))
        return [u.model_copy() for u in users]


class InMemoryStore:
    """Bundle of in-memory repositories sharing one process lifetime."""

    def __init__(self) -> None:
        self.messages = InMemoryMessageRepository()
        self.conversations = InMemoryConversationRepository()
        self.users = InMemoryUserRepository()
