from datetime import datetime
from typing import Optional, TypedDict

from bson import ObjectId


class MessageDocument(TypedDict, total=False):
    _id: ObjectId
    conversation_id: ObjectId
    sender_id: str
    receiver_id: str
    content: str
    timestamp: datetime
    read: bool
    # client ack / retry dedup key
    client_message_id: Optional[str]
