from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from verisponsor.schemas.user import USER_ID_PATTERN


class Message(BaseModel):

    model_config = ConfigDict(frozen=True)

    id: str
    conversation_id: str
    sender_id: str
    receiver_id: str
    content: str
    timestamp: datetime
    read: bool = False
    client_message_id: Optional[str] = None


class Conversation(BaseModel):

    id: str
    participants: List[str]
    last_message: Optional[Message] = None
    last_message_at: Optional[datetime] = None
    unread_counters: Dict[str, int] = Field(default_factory=dict)
    created_at: datetime

    def has_participant(self, user_id: str) -> bool:
        return user_id in self.participants

    def other_participant(self, user_id: str) -> str:
        a, b = self.participants
        return b if user_id == a else a

    def unread_count(self, user_id: str) -> int:
        return self.unread_counters.get(user_id, 0)


class SendMessageRequest(BaseModel):

    content: str
    client_message_id: Optional[str] = None


class SocketMessageFrame(SendMessageRequest):

    type: Literal["message"] = "message"
    conversation_id: str


class SocketReadFrame(BaseModel):

    type: Literal["read"]
    conversation_id: str


class StartConversationRequest(BaseModel):

    other_user_id: str = Field(min_length=1, pattern=USER_ID_PATTERN)


class ConversationView(BaseModel):
    """Conversation as seen by one participant."""

    id: str
    participants: List[str]
    other_user_id: str
    last_message: Optional[Message] = None
    last_message_label: Optional[str] = None
    unread_count: int = 0


class ConversationDetail(BaseModel):

    conversation: ConversationView
    messages: List[Message]
