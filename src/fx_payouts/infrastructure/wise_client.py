"""Thin httpx adapters for the Wise payout API.

Responses are returned as decoded JSON without reshaping. Non-2xx responses
raise httpx.HTTPStatusError; timeouts come from the client, nothing is retried.
"""

import logging
from decimal import Decimal
from typing import Any

import httpx

from config.settings import settings

logger = logging.getLogger(__name__)

_client: httpx.AsyncClient | None = None


def get_wise_client() -> httpx.AsyncClient:
    """Get or create the shared Wise HTTP client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = httpx.AsyncClient(
            base_url=settings.WISE_API_URL,
            headers={
                "Authorization": f"Bearer {settings.WISE_API_TOKEN}",
                "Content-Type": "application/json",
            },
            timeout=settings.WISE_TIMEOUT_SECONDS,
        )
    return _client


async def close_wise_client() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


class WisePayoutApi:
    def __init__(
        self, client: httpx.AsyncClient | None = None, profile_id: str | None = None
    ) -> None:
        self._client = client
        self._profile_id = profile_id or settings.WISE_PROFILE_ID

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_wise_client()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self.client.request(method, path, **kwargs)
        if response.is_error:
            logger.error("Wise %s %s → %d: %s", method, path, response.status_code, response.text)
        response.raise_for_status()
        return response.json()

    async def get_exchange_rate(self, target_currency: str) -> list[dict[str, Any]]:
        return await self._request(
            "GET", "/v1/rates", params={"source": "USD", "target": target_currency}
        )

    async def get_recipient_account(self, recipient_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/v1/accounts/{recipient_id}")

    async def create_quote(
        self, target_currency: str, amount: Decimal, recipient_id: str
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/v3/profiles/{self._profile_id}/quotes",
            json={
                "sourceCurrency": "USD",
                "targetCurrency": target_currency,
                "targetAmount": float(amount),
                "targetAccount": recipient_id,
                "payOut": "BANK_TRANSFER",
            },
        )

    async def create_transfer(
        self,
        quote_id: str,
        recipient_id: str,
        unique_transaction_id: str,
        reference: str,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/v1/transfers",
            json={
                "targetAccount": recipient_id,
                "quoteUuid": quote_id,
                "customerTransactionId": unique_transaction_id,
                "details": {"reference": reference},
            },
        )

    async def fund_transfer(self, transfer_id: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/v3/profiles/{self._profile_id}/transfers/{transfer_id}/payments",
            json={"type": "BALANCE"},
        )

    async def get_transfer(self, transfer_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/v1/transfers/{transfer_id}")

    async def delivery_estimate(self, transfer_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/v1/delivery-estimates/{transfer_id}")

    async def get_balances(self) -> list[dict[str, Any]]:
        return await self._request(
            "GET", f"/v4/profiles/{self._profile_id}/balances", params={"types": "STANDARD"}
        )


class WiseAccountBalance:
    """Platform USD balance held at the processor."""

    def __init__(self, api: WisePayoutApi | None = None) -> None:
        self._api = api or WisePayoutApi()

    async def usd_balance(self) -> Decimal:
        for balance in await self._api.get_balances():
            if balance.get("currency") == "USD":
                return Decimal(str(balance["amount"]["value"]))
        return Decimal(0)

    async def has_sufficient_balance(self, amount_usd: Decimal) -> bool:
        available = await self.usd_balance()
        logger.debug("Wise USD balance %s, needed %s", available, amount_usd)
        return available >= amount_usd
