import asyncio
from datetime import datetime, timedelta

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from wallfair.core.config import Settings
from wallfair.core.constants import ChatMessageType
from wallfair.core.context import AppContext
from wallfair.core.exceptions import InternalError
from wallfair.db.database import create_sessionmaker, init_db
from wallfair.db.models.chat_message import ChatMessage
from wallfair.db.models.user import User
from wallfair.main import create_app
from wallfair.services import auth_service

VALID_CODE = "123456"
BASE_DATE = datetime(2021, 9, 1, 12, 0, 0)


# --- Fakes for the external collaborators ---

class FakeSms:
    def __init__(self):
        self.sent = []

    async def send_verification(self, phone):
        self.sent.append(phone)
        return "pending"

    async def check_verification(self, phone, code):
        return code == VALID_CODE

    async def close(self):
        pass


class FakeWallet:
    def __init__(self):
        self.balances = {}
        self.minted = []
        self.transactions = []
        self.amm_interactions = []
        self.fail = False

    async def balance_of(self, user_id):
        if self.fail:
            raise InternalError("Ledger request failed")
        return self.balances.get(user_id, 0)

    async def mint(self, user_id, amount):
        self.minted.append((user_id, amount))
        self.balances[user_id] = self.balances.get(user_id, 0) + amount

    async def get_transactions(self, user_id):
        return self.transactions

    async def get_amm_interactions(self, user_id):
        return self.amm_interactions

    async def close(self):
        pass


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_confirm_mail(self, user):
        if self.fail:
            raise InternalError("Sending the confirmation mail failed")
        user.email_code = "654321"
        self.sent.append(user.email)


class FakeRedis:
    """In-process pub/sub, subscribers of a room get every later publish."""

    def __init__(self):
        self.published = []
        self.listeners = {}

    async def publish_chat_message(self, room_id, payload):
        self.published.append((room_id, payload))
        for queue in self.listeners.get(room_id, []):
            queue.put_nowait(payload)
        return 1

    async def listen_room(self, room_id):
        queue = asyncio.Queue()
        self.listeners.setdefault(room_id, []).append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self.listeners[room_id].remove(queue)

    async def close(self):
        pass


# --- Fixtures ---

def build_context() -> AppContext:
    """Context on an in-memory SQLite DB with fake collaborators. Tables are not created yet."""
    settings = Settings(database_url="sqlite+aiosqlite://", secret_key="test-secret", log_level="WARNING")
    # one shared connection, otherwise every session sees its own empty memory DB
    engine = create_async_engine(
        settings.database_url,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    return AppContext(
        settings=settings,
        engine=engine,
        sessionmaker=create_sessionmaker(engine),
        redis=FakeRedis(),
        sms=FakeSms(),
        wallet=FakeWallet(),
        mailer=FakeMailer(),
    )


@pytest.fixture
async def ctx():
    ctx = build_context()
    await init_db(ctx.engine)
    yield ctx
    await ctx.engine.dispose()


@pytest.fixture
async def db(ctx):
    async with ctx.sessionmaker() as session:
        yield session


@pytest.fixture
async def client(ctx):
    app = create_app(ctx=ctx)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# --- Helpers ---

async def make_user(db, phone, **fields) -> User:
    user = User(phone=phone, **fields)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_messages(db, count, room_id=None, user_id=1, type=ChatMessageType.CHAT_MESSAGE, start=BASE_DATE, **fields):
    """`count` messages, one minute apart, oldest first."""
    messages = [
        ChatMessage(
            room_id=room_id,
            user_id=user_id,
            type=type.value,
            message=f"message {i}",
            date=start + timedelta(minutes=i),
            **fields,
        )
        for i in range(count)
    ]
    db.add_all(messages)
    await db.commit()
    return messages


def auth_headers(ctx, user) -> dict:
    return {"Authorization": f"Bearer {auth_service.generate_jwt(ctx.settings, user)}"}
