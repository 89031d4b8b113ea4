import json

from sqlalchemy.exc import OperationalError

from conftest import make_user
from wallfair.core.constants import ChatMessageType
from wallfair.services import chat_message_service
from wallfair.services.chat_service import ChatService


async def test_socket_frame_is_stored_and_published(ctx, db):
    sender = await make_user(db, "+491709999991", username="gina")

    stored = await ChatService.process_message(
        ctx.sessionmaker, ctx.redis, 8, sender, json.dumps({"message": "gm"})
    )

    assert stored.type == ChatMessageType.CHAT_MESSAGE.value
    page = await chat_message_service.get_latest_chat_messages_by_room(db, 8)
    assert page.total == 1
    assert page.data[0].message == "gm"

    [(room_id, payload)] = ctx.redis.published
    assert room_id == 8
    assert payload["id"] == stored.id
    assert payload["user"]["username"] == "gina"


async def test_bad_frames_are_dropped(ctx, db):
    sender = await make_user(db, "+491709999992")

    for raw in ("not json", json.dumps({"type": "PING"}), json.dumps({"message": "   "}), json.dumps([1, 2])):
        assert await ChatService.process_message(ctx.sessionmaker, ctx.redis, 8, sender, raw) is None

    page = await chat_message_service.get_latest_chat_messages_by_room(db, 8)
    assert page.total == 0
    assert ctx.redis.published == []


async def test_failed_insert_keeps_the_socket_alive(ctx, db, monkeypatch):
    sender = await make_user(db, "+491709999993")

    async def broken_insert(session, data):
        raise OperationalError("INSERT INTO chat_messages", {}, Exception("database is locked"))

    monkeypatch.setattr(chat_message_service, "create_chat_message", broken_insert)

    stored = await ChatService.process_message(
        ctx.sessionmaker, ctx.redis, 8, sender, json.dumps({"message": "gm"})
    )

    assert stored is None
    assert ctx.redis.published == []
