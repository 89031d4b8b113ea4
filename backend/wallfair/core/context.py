from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from wallfair.core.config import Settings
from wallfair.db.database import create_engine, create_sessionmaker
from wallfair.db.database_redis import RedisManager
from wallfair.services.mail_service import MailService
from wallfair.services.sms_service import SmsService
from wallfair.services.wallet_service import WalletService


@dataclass
class AppContext:
    """Everything a request needs beyond its own session, built once per app."""

    settings: Settings
    engine: AsyncEngine
    sessionmaker: async_sessionmaker
    redis: RedisManager
    sms: SmsService
    wallet: WalletService
    mailer: MailService

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        engine = create_engine(settings.database_url, echo=settings.sql_echo)
        return cls(
            settings=settings,
            engine=engine,
            sessionmaker=create_sessionmaker(engine),
            redis=RedisManager(settings.redis_url),
            sms=SmsService(settings),
            wallet=WalletService(settings),
            mailer=MailService(settings),
        )

    async def close(self):
        await self.sms.close()
        await self.wallet.close()
        await self.redis.close()
        await self.engine.dispose()


def get_ctx(request: Request) -> AppContext:
    return request.app.state.ctx
