"""Tests for the Wise httpx adapters using httpx.MockTransport."""

import json
from decimal import Decimal

import httpx
import pytest

from src.fx_payouts.infrastructure.wise_client import WiseAccountBalance, WisePayoutApi


def _api(handler, requests: list[httpx.Request] | None = None) -> WisePayoutApi:  # type: ignore[no-untyped-def]
    def record(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    client = httpx.AsyncClient(
        transport=httpx.MockTransport(record), base_url="https://wise.test"
    )
    return WisePayoutApi(client=client, profile_id="42")


class TestWisePayoutApi:
    async def test_create_quote_payload(self) -> None:
        requests: list[httpx.Request] = []
        api = _api(lambda r: httpx.Response(200, json={"id": "q-1"}), requests)

        quote = await api.create_quote("EUR", Decimal("180.00"), "rcp-1")

        assert quote == {"id": "q-1"}
        assert requests[0].method == "POST"
        assert requests[0].url.path == "/v3/profiles/42/quotes"
        body = json.loads(requests[0].content)
        assert body["targetCurrency"] == "EUR"
        assert body["targetAmount"] == 180.0
        assert body["targetAccount"] == "rcp-1"

    async def test_create_transfer_sends_idempotency_uuid(self) -> None:
        requests: list[httpx.Request] = []
        api = _api(lambda r: httpx.Response(200, json={"id": 1}), requests)

        await api.create_transfer("q-1", "rcp-1", "uuid-1", "DIV")

        body = json.loads(requests[0].content)
        assert body["customerTransactionId"] == "uuid-1"
        assert body["quoteUuid"] == "q-1"
        assert body["details"] == {"reference": "DIV"}

    async def test_fund_transfer_path(self) -> None:
        requests: list[httpx.Request] = []
        api = _api(lambda r: httpx.Response(200, json={"status": "COMPLETED"}), requests)

        result = await api.fund_transfer("98765")

        assert result["status"] == "COMPLETED"
        assert requests[0].url.path == "/v3/profiles/42/transfers/98765/payments"

    async def test_exchange_rate_query(self) -> None:
        requests: list[httpx.Request] = []
        api = _api(lambda r: httpx.Response(200, json=[{"rate": 0.9}]), requests)

        rates = await api.get_exchange_rate("EUR")

        assert rates == [{"rate": 0.9}]
        assert requests[0].url.params["source"] == "USD"
        assert requests[0].url.params["target"] == "EUR"

    async def test_error_status_raises(self) -> None:
        api = _api(lambda r: httpx.Response(422, json={"errors": ["bad account"]}))

        with pytest.raises(httpx.HTTPStatusError):
            await api.get_recipient_account("rcp-1")


class TestWiseAccountBalance:
    async def test_usd_balance(self) -> None:
        balances = [
            {"currency": "EUR", "amount": {"value": 10.0}},
            {"currency": "USD", "amount": {"value": 1234.56}},
        ]
        balance = WiseAccountBalance(_api(lambda r: httpx.Response(200, json=balances)))

        assert await balance.usd_balance() == Decimal("1234.56")
        assert await balance.has_sufficient_balance(Decimal("1234.56"))
        assert not await balance.has_sufficient_balance(Decimal("1234.57"))

    async def test_missing_usd_balance_is_zero(self) -> None:
        balance = WiseAccountBalance(_api(lambda r: httpx.Response(200, json=[])))

        assert await balance.usd_balance() == Decimal(0)
        assert not await balance.has_sufficient_balance(Decimal("0.01"))
