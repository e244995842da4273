import asyncio
import json

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from loguru import logger
from pydantic import ValidationError

from verisponsor.exceptions import ChatError
from verisponsor.schemas.chat import SocketMessageFrame, SocketReadFrame
from verisponsor.services.chat_service import ChatService
from verisponsor.utils.dependencies import get_chat_service, identity_from_headers
from verisponsor.utils.realtime_bus import deliver_to_user, get_bus, message_event, user_channel
from verisponsor.utils.websocket_manager import get_manager


router = APIRouter(prefix="/messages", tags=["chat"])

WS_UNAUTHORIZED = 4401


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket, service: ChatService = Depends(get_chat_service)):
    try:
        identity = identity_from_headers(websocket.headers)
    except ValueError:
        await websocket.close(code=WS_UNAUTHORIZED)
        return

    manager = get_manager()
    await manager.connect(identity.id, websocket)
    bus = await get_bus()
    subscriber = None
    sub_task = None
    if bus.enabled:
        subscriber = await bus.subscribe(user_channel(identity.id), websocket.send_text)
        sub_task = asyncio.create_task(subscriber.run())

    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_text(json.dumps({"type": "error", "detail": "Invalid JSON"}))
                continue
            if not isinstance(msg, dict):
                await websocket.send_text(json.dumps({"type": "error", "detail": "Invalid message payload"}))
                continue
            try:
                if msg.get("type") == "read":
                    frame = SocketReadFrame.model_validate(msg)
                else:
                    frame = SocketMessageFrame.model_validate(msg)
            except ValidationError as exc:
                errors = exc.errors(include_url=False, include_context=False, include_input=False)
                await websocket.send_text(json.dumps({"type": "error", "detail": "Invalid message payload", "errors": errors}))
                continue

            if isinstance(frame, SocketReadFrame):
                try:
                    count = await service.mark_read(frame.conversation_id, identity.id)
                except ChatError as exc:
                    await websocket.send_text(json.dumps({"type": "error", "detail": str(exc)}))
                    continue
                await websocket.send_text(json.dumps({"type": "read", "conversation_id": frame.conversation_id, "updated": count}))
                continue

            try:
                message = await service.send_message(identity, frame.conversation_id, frame.content, frame.client_message_id)
            except ChatError as exc:
                await websocket.send_text(json.dumps({"type": "error", "detail": str(exc)}))
                continue
            await websocket.send_text(json.dumps({
                "type": "ack",
                "message_id": message.id,
                "conversation_id": message.conversation_id,
                "client_message_id": message.client_message_id,
            }))
            await deliver_to_user(message.receiver_id, message_event(message))
    except WebSocketDisconnect:
        logger.debug("Client {} left the chat socket", identity.id)
    finally:
        manager.disconnect(identity.id, websocket)
        if subscriber is not None:
            await subscriber.cancel()
        if sub_task is not None:
            sub_task.cancel()
