from typing import Literal, Optional, TypedDict


UserRole = Literal["youtuber", "sponsor"]


class UserDocument(TypedDict, total=False):

    _id: str
    name: str
    email: str
    role: UserRole
    avatar: Optional[str]
    is_verified: bool
