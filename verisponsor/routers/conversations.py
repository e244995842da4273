from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, status

from verisponsor.exceptions import ChatError
from verisponsor.schemas.chat import (
    Conversation,
    ConversationDetail,
    ConversationView,
    Message,
    SendMessageRequest,
    StartConversationRequest,
)
from verisponsor.schemas.user import Identity
from verisponsor.services.chat_service import ChatService
from verisponsor.utils.dependencies import get_chat_service, get_current_user
from verisponsor.utils.http_errors import to_http_exception
from verisponsor.utils.realtime_bus import deliver_to_user, message_event
from verisponsor.utils.time_format import format_message_time


router = APIRouter(prefix="/conversations", tags=["chat"])


def to_view(convo: Conversation, viewer_id: str, now: Optional[datetime] = None) -> ConversationView:
    label = None
    if convo.last_message is not None:
        label = format_message_time(convo.last_message.timestamp, now or datetime.now(timezone.utc))
    return ConversationView(
        id=convo.id,
        participants=convo.participants,
        other_user_id=convo.other_participant(viewer_id),
        last_message=convo.last_message,
        last_message_label=label,
        unread_count=convo.unread_count(viewer_id),
    )


@router.get("")
async def list_conversations(current_user: Identity = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    items = await service.list_for_user(current_user.id)
    return {"items": [to_view(c, current_user.id) for c in items]}


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ConversationView)
async def start_conversation(body: StartConversationRequest, current_user: Identity = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    try:
        convo = await service.start_conversation(current_user, body.other_user_id)
    except ChatError as exc:
        raise to_http_exception(exc)
    return to_view(convo, current_user.id)


@router.get("/{conversation_id}", response_model=ConversationDetail)
async def open_conversation(conversation_id: str, current_user: Identity = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    try:
        convo, messages = await service.open_conversation(current_user, conversation_id)
    except ChatError as exc:
        raise to_http_exception(exc)
    return ConversationDetail(conversation=to_view(convo, current_user.id), messages=messages)


@router.get("/{conversation_id}/messages")
async def list_messages(conversation_id: str, current_user: Identity = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    try:
        messages = await service.list_messages(current_user, conversation_id)
    except ChatError as exc:
        raise to_http_exception(exc)
    return {"items": messages}


@router.post("/{conversation_id}/messages", status_code=status.HTTP_201_CREATED, response_model=Message)
async def send_message(conversation_id: str, body: SendMessageRequest, current_user: Identity = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    try:
        message = await service.send_message(current_user, conversation_id, body.content, body.client_message_id)
    except ChatError as exc:
        raise to_http_exception(exc)
    await deliver_to_user(message.receiver_id, message_event(message))
    return message


@router.post("/{conversation_id}/read")
async def mark_read(conversation_id: str, current_user: Identity = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    try:
        count = await service.mark_read(conversation_id, current_user.id)
    except ChatError as exc:
        raise to_http_exception(exc)
    return {"updated": count}
