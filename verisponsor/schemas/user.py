import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from verisponsor.models.user import UserRole


# user ids become keys of the per-user unread counters in MongoDB: no dots, no leading $
USER_ID_PATTERN = r"^[^.$\x00][^.\x00]*$"


def is_valid_user_id(value: str) -> bool:
    return isinstance(value, str) and re.match(USER_ID_PATTERN, value) is not None


class Identity(BaseModel):
    """Authenticated caller, as handed over by the identity provider."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, pattern=USER_ID_PATTERN)
    role: UserRole
    is_verified: bool = False


class UserBase(BaseModel):

    name: str = Field(min_length=1)
    email: EmailStr
    avatar: Optional[str] = None


class UserUpdate(UserBase):

    pass


class User(UserBase):

    id: str = Field(min_length=1, pattern=USER_ID_PATTERN)
    role: UserRole
    is_verified: bool = False
