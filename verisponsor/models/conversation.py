from datetime import datetime
from typing import List, Optional, TypedDict

from bson import ObjectId

from verisponsor.models.message import MessageDocument


class ConversationDocument(TypedDict, total=False):
    _id: ObjectId
    # sorted pair, joined; unique per 1:1 conversation
    pair_key: str
    participants: List[str]
    last_message: Optional[MessageDocument]
    last_message_at: Optional[datetime]
    # per-user unread counters (user_id -> count)
    unread_counters: dict[str, int]
    created_at: datetime
