import re
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from verisponsor.models.user import UserDocument, UserRole
from verisponsor.schemas.user import User


class MongoUserRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db.get_collection("users")

    async def get_user_by_id(self, user_id: str) -> Optional[User]:

        doc: Optional[UserDocument] = await self._collection.find_one({"_id": user_id})
        if not doc:
            return None
        # identity provider ids are used as the document id
        return User(id=doc["_id"], **{k: v for k, v in doc.items() if k != "_id"})

    async def upsert_user(self, user: User) -> User:

        doc: UserDocument = user.model_dump(exclude={"id"})
        await self._collection.replace_one({"_id": user.id}, doc, upsert=True)
        return user

    async def list_users(self, role: Optional[UserRole] = None, query: Optional[str] = None) -> List[User]:
        filters = {}
        if role:
            filters["role"] = role
        if query:
            filters["name"] = {"$regex": re.escape(query), "$options": "i"}
        docs: List[UserDocument] = await self._collection.find(filters).sort([("name", 1), ("_id", 1)]).to_list(length=None)
        return [User(id=doc["_id"], **{k: v for k, v in doc.items() if k != "_id"}) for doc in docs]
