import asyncio
import sys

from wallfair.core.config import Settings
from wallfair.core.context import AppContext
from wallfair.db.database import init_db
from wallfair.services import user_service


async def grant_admin(phone: str):
    """Gives admin rights to the user registered with this phone number."""
    ctx = AppContext.from_settings(Settings())
    try:
        await init_db(ctx.engine)
        async with ctx.sessionmaker() as session:
            user = await user_service.get_user_by_phone(session, phone)
            if user is None:
                print(f"No user with phone {phone}, log in once through the app first.")
                return
            if user.admin:
                print(f"User {user.id} is already an admin.")
                return

            user.admin = True
            await user_service.save_user(session, user)
            print(f"User {user.id} ({user.username or phone}) is now an admin!")
    finally:
        await ctx.close()


if __name__ == "__main__":
    phone = sys.argv[1] if len(sys.argv) > 1 else input("Enter phone number: ")
    asyncio.run(grant_admin(phone.replace(" ", "")))
