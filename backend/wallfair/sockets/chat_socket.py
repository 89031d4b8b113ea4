# backend/wallfair/sockets/chat_socket.py
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status

from wallfair.core.security import verify_token
from wallfair.db.models.user import User
from wallfair.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter()


async def _authenticate(websocket: WebSocket, token: Optional[str]) -> Optional[User]:
    ctx = websocket.app.state.ctx
    if not token:
        return None
    try:
        user_id = verify_token(ctx.settings, token)
    except HTTPException:
        return None
    async with ctx.sessionmaker() as db:
        return await db.get(User, user_id)


@router.websocket("/ws/chat/{room_id}")
async def chat_endpoint(websocket: WebSocket, room_id: int, token: Optional[str] = None):
    """
    Room chat. Frames from the client: {"message": "..."}; frames to the
    client: room messages in the history format, pushed through Redis so
    every API instance sees them.
    """
    user = await _authenticate(websocket, token)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    ctx = websocket.app.state.ctx
    await websocket.accept()
    logger.info(f"[CHAT] User {user.id} joined room {room_id}")

    async def receive_loop():
        while True:
            raw_data = await websocket.receive_text()
            await ChatService.process_message(ctx.sessionmaker, ctx.redis, room_id, user, raw_data)

    async def forward_loop():
        async for payload in ctx.redis.listen_room(room_id):
            await websocket.send_json(payload)

    tasks = [asyncio.create_task(receive_loop()), asyncio.create_task(forward_loop())]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error(f"[CHAT] Room {room_id} connection of user {user.id} failed: {exc}")
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"[CHAT] User {user.id} left room {room_id}")
