from datetime import datetime, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from verisponsor.models.conversation import ConversationDocument
from verisponsor.repositories.base import pair_key
from verisponsor.repositories.message_repository import message_from_doc, message_to_doc, to_object_id
from verisponsor.schemas.chat import Conversation, Message


def conversation_from_doc(doc: ConversationDocument) -> Conversation:
    last = doc.get("last_message")
    return Conversation(
        id=str(doc["_id"]),
        participants=list(doc["participants"]),
        last_message=message_from_doc(last) if last else None,
        last_message_at=doc.get("last_message_at"),
        unread_counters=dict(doc.get("unread_counters") or {}),
        created_at=doc["created_at"],
    )


class MongoConversationRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["conversations"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("pair_key", ASCENDING)], unique=True)
        await self.collection.create_index([("participants", ASCENDING)])
        await self.collection.create_index([("last_message_at", DESCENDING)])

    async def get(self, conversation_id: str) -> Optional[Conversation]:
        oid = to_object_id(conversation_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return conversation_from_doc(doc) if doc else None

    async def get_or_create(self, participant_a: str, participant_b: str) -> Conversation:
        participants = sorted([participant_a, participant_b])
        # upsert on the unique pair key so concurrent starts converge on one document
        doc = await self.collection.find_one_and_update(
            {"pair_key": pair_key(participant_a, participant_b)},
            {
                "$setOnInsert": {
                    "participants": participants,
                    "last_message": None,
                    "last_message_at": None,
                    "unread_counters": {participants[0]: 0, participants[1]: 0},
                    "created_at": datetime.now(timezone.utc),
                }
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return conversation_from_doc(doc)

    async def list_for_user(self, user_id: str) -> List[Conversation]:
        # nulls sort lowest, so conversations without messages land last
        sort = [("last_message_at", DESCENDING), ("created_at", DESCENDING), ("_id", DESCENDING)]
        cursor = self.collection.find({"participants": user_id}).sort(sort)
        items = await cursor.to_list(length=None)
        return [conversation_from_doc(it) for it in items]

    async def apply_new_message(self, message: Message) -> Conversation:
        doc = await self.collection.find_one_and_update(
            {"_id": to_object_id(message.conversation_id)},
            {
                "$set": {
                    "last_message": message_to_doc(message),
                    "last_message_at": message.timestamp,
                },
                "$inc": {f"unread_counters.{message.receiver_id}": 1},
            },
            return_document=ReturnDocument.AFTER,
        )
        return conversation_from_doc(doc)

    async def reset_unread(self, conversation_id: str, user_id: str) -> None:
        await self.collection.update_one(
            {"_id": to_object_id(conversation_id)},
            {"$set": {f"unread_counters.{user_id}": 0}},
        )
        await self.collection.update_one(
            {"_id": to_object_id(conversation_id), "last_message.receiver_id": user_id},
            {"$set": {"last_message.read": True}},
        )
