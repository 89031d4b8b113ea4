# backend/wallfair/services/sms_service.py
import logging

import httpx

from wallfair.core.config import Settings
from wallfair.core.exceptions import InternalError

logger = logging.getLogger(__name__)

TWILIO_VERIFY_URL = "https://verify.twilio.com/v2/Services/{service_sid}"


class SmsService:
    """
    Phone verification through the Twilio Verify REST API.
    Twilio generates, sends and checks the code; nothing is stored here.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient = None):
        self.base_url = TWILIO_VERIFY_URL.format(service_sid=settings.twilio_verify_sid)
        self.client = client or httpx.AsyncClient(
            auth=(settings.twilio_account_sid or "", settings.twilio_auth_token or ""),
            timeout=10.0,
        )

    async def send_verification(self, phone: str) -> str:
        """Sends a code by SMS and returns the verification status (e.g. 'pending')."""
        try:
            res = await self.client.post(f"{self.base_url}/Verifications", data={"To": phone, "Channel": "sms"})
            res.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"[SMS] Sending verification to {phone} failed: {e}")
            raise InternalError("SMS could not be sent")
        return res.json().get("status", "pending")

    async def check_verification(self, phone: str, code: str) -> bool:
        try:
            res = await self.client.post(f"{self.base_url}/VerificationCheck", data={"To": phone, "Code": code})
        except httpx.HTTPError as e:
            logger.error(f"[SMS] Verification check for {phone} failed: {e}")
            raise InternalError("SMS verification failed")

        # Twilio answers 404 once a verification expired or was already approved
        if res.status_code == 404:
            return False
        if res.is_error:
            logger.error(f"[SMS] Verification check for {phone} returned {res.status_code}")
            raise InternalError("SMS verification failed")
        return res.json().get("status") == "approved"

    async def close(self):
        await self.client.aclose()
