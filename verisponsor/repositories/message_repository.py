from datetime import datetime
from typing import List, Optional, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from verisponsor.models.message import MessageDocument
from verisponsor.schemas.chat import Message


def to_object_id(value: str) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def message_from_doc(doc: MessageDocument) -> Message:
    return Message(
        id=str(doc["_id"]),
        conversation_id=str(doc["conversation_id"]),
        sender_id=doc["sender_id"],
        receiver_id=doc["receiver_id"],
        content=doc["content"],
        timestamp=doc["timestamp"],
        read=doc.get("read", False),
        client_message_id=doc.get("client_message_id"),
    )


def message_to_doc(message: Message) -> MessageDocument:
    return {
        "_id": ObjectId(message.id),
        "conversation_id": ObjectId(message.conversation_id),
        "sender_id": message.sender_id,
        "receiver_id": message.receiver_id,
        "content": message.content,
        "timestamp": message.timestamp,
        "read": message.read,
        "client_message_id": message.client_message_id,
    }


class MongoMessageRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["messages"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("conversation_id", ASCENDING), ("timestamp", ASCENDING)])
        await self.collection.create_index(
            [("conversation_id", ASCENDING), ("client_message_id", ASCENDING)],
            unique=True,
            partialFilterExpression={"client_message_id": {"$type": "string"}},
        )

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
            existing = await self.find_by_client_id(conversation_id, client_message_id)
            if existing:
                return existing, False
        # BSON dates hold milliseconds; return exactly what a later read sees
        timestamp = timestamp.replace(microsecond=timestamp.microsecond - timestamp.microsecond % 1000)
        doc: MessageDocument = {
            "conversation_id": to_object_id(conversation_id),
            "sender_id": sender_id,
            "receiver_id": receiver_id,
            "content": content,
            "timestamp": timestamp,
            "read": False,
            "client_message_id": client_message_id,
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            # a concurrent retry with the same client id won the insert
            existing = await self.find_by_client_id(conversation_id, client_message_id)
            if existing is None:
                raise
            return existing, False
        doc["_id"] = result.inserted_id
        return message_from_doc(doc), True

    async def find_by_client_id(self, conversation_id: str, client_message_id: str) -> Optional[Message]:
        doc = await self.collection.find_one(
            {"conversation_id": to_object_id(conversation_id), "client_message_id": client_message_id}
        )
        return message_from_doc(doc) if doc else None

    async def list_by_conversation(self, conversation_id: str) -> List[Message]:
        oid = to_object_id(conversation_id)
        if oid is None:
            return []
        cursor = self.collection.find({"conversation_id": oid}).sort([("timestamp", ASCENDING), ("_id", ASCENDING)])
        items = await cursor.to_list(length=None)
        return [message_from_doc(it) for it in items]

    async def mark_read(self, conversation_id: str, viewer_id: str) -> int:
        result = await self.collection.update_many(
            {"conversation_id": to_object_id(conversation_id), "receiver_id": viewer_id, "read": False},
            {"$set": {"read": True}},
        )
        return result.modified_count or 0
