from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query

from verisponsor.exceptions import ChatError
from verisponsor.schemas.user import Identity, User, UserUpdate
from verisponsor.services.user_service import UserService
from verisponsor.utils.dependencies import get_current_user, get_user_service
from verisponsor.utils.http_errors import to_http_exception


router = APIRouter(prefix="/users", tags=["user"])


@router.put("/me", response_model=User)
async def register_me(body: UserUpdate, current_user: Identity = Depends(get_current_user), service: UserService = Depends(get_user_service)):
    return await service.register_user(current_user, body)


@router.get("", response_model=List[User])
async def discover_users(
    q: Optional[str] = Query(None, max_length=100),
    sort: Literal["name", "verified"] = "name",
    current_user: Identity = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return await service.discover(current_user, q, sort)


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str, current_user: Identity = Depends(get_current_user), service: UserService = Depends(get_user_service)):
    try:
        return await service.get_user(user_id)
    except ChatError as exc:
        raise to_http_exception(exc)
