from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from loguru import logger

from verisponsor.exceptions import (
    ConversationNotFoundError,
    EmptyContentError,
    InvalidParticipantError,
    InvalidParticipantsError,
    UserNotFoundError,
)
from verisponsor.repositories.base import ConversationRepository, MessageRepository, UserRepository
from verisponsor.schemas.chat import Conversation, Message
from verisponsor.schemas.user import Identity, is_valid_user_id
from verisponsor.utils.locks import ConversationLocks, get_locks


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ChatService:
    """Conversation store: message appends, unread tracking and the conversation index.

    Every write touching a conversation runs under that conversation's lock, so
    the message list, ``last_message`` and the unread counters change together.
    """

    def __init__(
        self,
        message_repo: MessageRepository,
        conversation_repo: ConversationRepository,
        user_repo: Optional[UserRepository] = None,
        locks: Optional[ConversationLocks] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._message_repo = message_repo
        self._conversation_repo = conversation_repo
        self._user_repo = user_repo
        self._locks = locks if locks is not None else get_locks()
        self._clock = clock

    # -- conversation index --

    async def get_or_create(self, participant_a: str, participant_b: str) -> Conversation:
        if participant_a == participant_b or not (is_valid_user_id(participant_a) and is_valid_user_id(participant_b)):
            raise InvalidParticipantsError(participant_a, participant_b)
        convo = await self._conversation_repo.get_or_create(participant_a, participant_b)
        logger.debug("Resolved conversation {} for {} and {}", convo.id, participant_a, participant_b)
        return convo

    async def get_conversation(self, conversation_id: str) -> Conversation:
        convo = await self._conversation_repo.get(conversation_id)
        if convo is None:
            raise ConversationNotFoundError(conversation_id)
        return convo

    async def list_for_user(self, user_id: str) -> List[Conversation]:
        return await self._conversation_repo.list_for_user(user_id)

    # -- message store --

    async def append(
        self,
        conversation_id: str,
        sender_id: str,
        receiver_id: str,
        content: str,
        client_message_id: Optional[str] = None,
    ) -> Message:
        if sender_id == receiver_id:
            raise InvalidParticipantError(sender_id)
        convo = await self.get_conversation(conversation_id)
        text = (content or "").strip()
        if not text:
            raise EmptyContentError()
        for user_id in (sender_id, receiver_id):
            if not convo.has_participant(user_id):
                raise InvalidParticipantError(user_id, conversation_id)

        async with self._locks.get(conversation_id):
            if client_message_id:
                existing = await self._message_repo.find_by_client_id(conversation_id, client_message_id)
                if existing:
                    logger.info("Duplicate send {} ignored in conversation {}", client_message_id, conversation_id)
                    return existing
            convo = await self.get_conversation(conversation_id)
            timestamp = self._clock()
            # clock skew must not reorder a conversation
            if convo.last_message_at is not None and timestamp < convo.last_message_at:
                timestamp = convo.last_message_at
            message, created = await self._message_repo.append(
                conversation_id=conversation_id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=text,
                timestamp=timestamp,
                client_message_id=client_message_id,
            )
            if created:
                await self._conversation_repo.apply_new_message(message)
        logger.info("Message {} appended to conversation {} by {}", message.id, conversation_id, sender_id)
        return message

    async def list_by_conversation(self, conversation_id: str) -> List[Message]:
        await self.get_conversation(conversation_id)
        async with self._locks.get(conversation_id):
            return await self._message_repo.list_by_conversation(conversation_id)

    async def mark_read(self, conversation_id: str, viewer_id: str) -> int:
        convo = await self.get_conversation(conversation_id)
        if not convo.has_participant(viewer_id):
            raise InvalidParticipantError(viewer_id, conversation_id)
        async with self._locks.get(conversation_id):
            updated = await self._message_repo.mark_read(conversation_id, viewer_id)
            await self._conversation_repo.reset_unread(conversation_id, viewer_id)
        if updated:
            logger.debug("Marked {} messages read for {} in conversation {}", updated, viewer_id, conversation_id)
        return updated

    async def unread_count(self, conversation_id: str, viewer_id: str) -> int:
        convo = await self.get_conversation(conversation_id)
        return convo.unread_count(viewer_id)

    # -- commands issued on behalf of an authenticated caller --

    async def start_conversation(self, identity: Identity, other_user_id: str) -> Conversation:
        if other_user_id == identity.id:
            raise InvalidParticipantsError(identity.id, other_user_id)
        if self._user_repo is not None and await self._user_repo.get_user_by_id(other_user_id) is None:
            raise UserNotFoundError(other_user_id)
        return await self.get_or_create(identity.id, other_user_id)

    async def send_message(
        self,
        identity: Identity,
        conversation_id: str,
        content: str,
        client_message_id: Optional[str] = None,
    ) -> Message:
        convo = await self.get_conversation(conversation_id)
        if not convo.has_participant(identity.id):
            raise InvalidParticipantError(identity.id, conversation_id)
        receiver_id = convo.other_participant(identity.id)
        return await self.append(conversation_id, identity.id, receiver_id, content, client_message_id)

    async def open_conversation(self, identity: Identity, conversation_id: str) -> Tuple[Conversation, List[Message]]:
        await self.mark_read(conversation_id, identity.id)
        async with self._locks.get(conversation_id):
            convo = await self.get_conversation(conversation_id)
            messages = await self._message_repo.list_by_conversation(conversation_id)
        return convo, messages

    async def list_messages(self, identity: Identity, conversation_id: str) -> List[Message]:
        convo = await self.get_conversation(conversation_id)
        if not convo.has_participant(identity.id):
            raise InvalidParticipantError(identity.id, conversation_id)
        return await self.list_by_conversation(conversation_id)
