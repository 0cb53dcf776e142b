from __future__ import annotations

import asyncio
import logging
import re
from datetime import timedelta
from typing import Awaitable

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PayloadError

from chat_sync.api.deps import RealtimeDep, StoreDep, VerifierDep
from chat_sync.api.middleware.correlation_id import correlation_id_ctx, new_correlation_id
from chat_sync.api.v1.schemas.conversation import ConversationResponse
from chat_sync.api.v1.schemas.message import MessageResponse
from chat_sync.application.exceptions import AppError
from chat_sync.config import settings
from chat_sync.infrastructure.ws.protocol import (
    CreateDirect,
    CreateGroup,
    OpenConversation,
    SendMessage,
    SetMuted,
    WsInbound,
    WsOutbound,
)
from chat_sync.services.chat_session import (
    TOPIC_CONVERSATIONS,
    TOPIC_MESSAGES,
    TOPIC_NAVIGATE,
    TOPIC_TYPING,
    ChatSession,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

CLOSE_LOGIN_REQUIRED = 4001


def _error_code(exc: AppError) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", type(exc).__name__).lower()


def snapshot(session: ChatSession, topic: str) -> WsOutbound | None:
    """Render the session's current view for one topic."""
    if topic == TOPIC_CONVERSATIONS:
        conversations = session.conversations
        return WsOutbound(
            type="conversations.snapshot",
            data={
                "status": conversations.status,
                "conversations": [
                    ConversationResponse.model_validate(c, from_attributes=True).model_dump(mode="json")
                    for c in conversations.conversations
                ],
            },
        )

    conversation_id = session.active_conversation_id
    if conversation_id is None:
        return None

    if topic == TOPIC_NAVIGATE:
        return WsOutbound(type="navigate", data={"conversation_id": str(conversation_id)})

    if topic == TOPIC_MESSAGES and session.stream is not None:
        return WsOutbound(
            type="messages.snapshot",
            data={
                "conversation_id": str(conversation_id),
                "status": session.stream.status,
                "messages": [
                    MessageResponse.from_entry(e).model_dump(mode="json")
                    for e in session.stream.entries
                ],
            },
        )

    if topic == TOPIC_TYPING and session.typing is not None:
        return WsOutbound(
            type="typing.snapshot",
            data={
                "conversation_id": str(conversation_id),
                "user_ids": [str(uid) for uid in session.typing.active_typers()],
            },
        )
    return None


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    verifier: VerifierDep,
    store: StoreDep,
    realtime: RealtimeDep,
    token: str | None = Query(None),
) -> None:
    principal = await verifier.lookup(token)
    if principal is None:
        await websocket.close(code=CLOSE_LOGIN_REQUIRED, reason="Login required")
        return

    cid = new_correlation_id()
    correlation_id_ctx.set(cid)
    await websocket.accept()

    session: ChatSession

    async def push(topic: str) -> None:
        frame = snapshot(session, topic)
        if frame is not None:
            await websocket.send_text(frame.model_dump_json())

    session = ChatSession(
        principal,
        store,
        realtime.change_feed,
        realtime.broadcast,
        typing_ttl=timedelta(seconds=settings.TYPING_TTL_SECONDS),
        typing_sweep_interval=settings.TYPING_SWEEP_INTERVAL,
        on_change=push,
    )

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{principal.principal_key}",
    )
    try:
        await _guarded(websocket, session.start())
        await _read_loop(websocket, session)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s [%s]", principal.principal_key, cid)
    finally:
        heartbeat_task.cancel()
        await session.close()


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await ws.send_text(WsOutbound(type="pong", data={}).model_dump_json())
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("Heartbeat stopped", exc_info=True)


async def _guarded(ws: WebSocket, command: Awaitable[object]) -> None:
    """Await a session command; application errors become error frames."""
    try:
        await command
    except AppError as exc:
        await ws.send_text(
            WsOutbound(
                type="error", data={"code": _error_code(exc), "detail": exc.detail},
            ).model_dump_json()
        )


async def _read_loop(ws: WebSocket, session: ChatSession) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except PayloadError:
            await ws.send_text(
                WsOutbound(type="error", data={"code": "invalid_payload"}).model_dump_json()
            )
            continue

        try:
            if msg.type == "ping":
                await ws.send_text(WsOutbound(type="pong", data={}).model_dump_json())

            elif msg.type == "typing":
                await session.publish_typing()

            elif msg.type == "conversation.open":
                cmd = OpenConversation.model_validate(msg.data)
                await _guarded(ws, session.open_conversation(cmd.conversation_id))

            elif msg.type == "message.send":
                cmd = SendMessage.model_validate(msg.data)
                await _guarded(ws, session.send_message(cmd.content))

            elif msg.type == "conversations.refresh":
                await _guarded(ws, session.conversations.refresh())

            elif msg.type == "conversation.create_direct":
                cmd = CreateDirect.model_validate(msg.data)
                await _guarded(ws, session.create_direct(cmd.user_id))

            elif msg.type == "conversation.create_group":
                cmd = CreateGroup.model_validate(msg.data)
                await _guarded(ws, session.create_group(cmd.name, cmd.member_ids))

            elif msg.type == "mark_read":
                await _guarded(ws, session.mark_read())

            elif msg.type == "mute":
                cmd = SetMuted.model_validate(msg.data)
                await _guarded(ws, session.set_muted(cmd.muted))

            else:
                await ws.send_text(
                    WsOutbound(type="error", data={"code": "unknown_type", "type": msg.type}).model_dump_json()
                )
        except PayloadError as exc:
            await ws.send_text(
                WsOutbound(
                    type="error", data={"code": "invalid_data", "detail": str(exc)},
                ).model_dump_json()
            )
