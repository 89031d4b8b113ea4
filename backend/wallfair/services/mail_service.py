# backend/wallfair/services/mail_service.py
import logging
import random
import smtplib
from email.message import EmailMessage

from fastapi.concurrency import run_in_threadpool

from wallfair.core.config import Settings
from wallfair.core.exceptions import InternalError
from wallfair.db.models.user import User

logger = logging.getLogger(__name__)


def generate_email_code() -> str:
    return str(random.randint(100000, 999999))


class MailService:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _send(self, message: EmailMessage):
        s = self.settings
        with smtplib.SMTP(s.mail_server, s.mail_port, timeout=10) as server:
            if s.mail_use_tls:
                server.starttls()
            if s.mail_username:
                server.login(s.mail_username, s.mail_password or "")
            server.send_message(message)

    def build_confirm_mail(self, user: User) -> EmailMessage:
        link = f"{self.settings.client_url}/confirm-email?userId={user.id}&code={user.email_code}"
        message = EmailMessage()
        message["Subject"] = "Confirm your email"
        message["From"] = self.settings.mail_from
        message["To"] = user.email
        message.set_content(
            f"Hi {user.name or user.username or ''},\n\n"
            f"please confirm your email address by opening this link:\n{link}\n"
        )
        return message

    async def send_confirm_mail(self, user: User):
        """
        Assigns a fresh confirmation code to the user (not committed here)
        and mails the confirmation link.
        """
        user.email_code = generate_email_code()
        message = self.build_confirm_mail(user)
        try:
            # smtplib blocks, keep it off the event loop
            await run_in_threadpool(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"[Mail] Confirmation mail to user {user.id} failed: {e}")
            raise InternalError("Confirmation mail could not be sent")
        logger.info(f"[Mail] Confirmation mail sent to user {user.id}")
