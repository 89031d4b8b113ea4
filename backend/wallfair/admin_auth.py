from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request

from wallfair.core.context import AppContext
from wallfair.services import user_service


class AdminAuth(AuthenticationBackend):
    """
    Admin panel login with the phone login flow: the form's username is the
    phone number, the password is the SMS code requested through
    /api/user/login.
    """

    def __init__(self, ctx: AppContext):
        super().__init__(secret_key=ctx.settings.admin_session_secret)
        self.ctx = ctx

    async def login(self, request: Request) -> bool:
        form = await request.form()
        phone = (form.get("username") or "").replace(" ", "")
        code = form.get("password") or ""

        async with self.ctx.sessionmaker() as session:
            user = await user_service.get_user_by_phone(session, phone)

            # 1. admins only
            if user is None or not user.admin:
                return False

            # 2. code check
            if not await self.ctx.sms.check_verification(phone, code):
                return False

            request.session.update({"user_id": user.id})
            return True

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        user_id = request.session.get("user_id")
        if not user_id:
            return False

        # admin rights may have been revoked since login
        async with self.ctx.sessionmaker() as session:
            user = await user_service.get_user_by_id(session, user_id)
            return bool(user and user.admin)
