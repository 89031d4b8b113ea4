# backend/wallfair/services/wallet_service.py
import logging
from typing import List

import httpx

from wallfair.core.config import Settings
from wallfair.core.constants import TOKEN_SYMBOL
from wallfair.core.exceptions import InternalError

logger = logging.getLogger(__name__)


class WalletService:
    """
    Client for the token ledger service. Amounts are integers in base units.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient = None, symbol: str = TOKEN_SYMBOL):
        self.symbol = symbol
        self.client = client or httpx.AsyncClient(base_url=settings.ledger_api_url, timeout=10.0)

    async def _get(self, path: str, **params):
        try:
            res = await self.client.get(path, params=params or None)
            res.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"[Wallet] GET {path} failed: {e}")
            raise InternalError("Ledger request failed")
        return res.json()

    async def balance_of(self, user_id: int) -> int:
        data = await self._get(f"/tokens/{self.symbol}/balances/{user_id}")
        return int(data["balance"])

    async def mint(self, user_id: int, amount: int) -> None:
        try:
            res = await self.client.post(
                f"/tokens/{self.symbol}/mint",
                json={"beneficiary": str(user_id), "amount": str(amount)},
            )
            res.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"[Wallet] Minting {amount} for user {user_id} failed: {e}")
            raise InternalError("Ledger request failed")

    async def get_transactions(self, user_id: int) -> List[dict]:
        return await self._get(f"/wallets/{user_id}/transactions")

    async def get_amm_interactions(self, user_id: int) -> List[dict]:
        return await self._get(f"/wallets/{user_id}/amm-interactions")

    async def close(self):
        await self.client.aclose()
