import base64

import pytest
import requests

from solana_pool_tracker.errors import ConnectionUnhealthyError, RateLimitedError, RpcError
from solana_pool_tracker.pools.liquidity import LiquidityReader
from solana_pool_tracker.utils import rate_limiter
from solana_pool_tracker.utils.solana_rpc import SolanaRpc


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.body


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.payloads = []

    def post(self, url, json=None, timeout=None):
        self.payloads.append(json)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def rpc_with(*responses):
    session = FakeSession(responses)
    return SolanaRpc("https://rpc.example", max_requests_per_second=1000, session=session), session


def ok(result):
    return FakeResponse(body={"jsonrpc": "2.0", "id": 1, "result": result})


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(rate_limiter, "exponential_backoff_sleep", lambda *args, **kwargs: None)


class TestSolanaRpc:

    def test_returns_result(self):
        rpc, session = rpc_with(ok(12345))
        assert rpc.get_slot() == 12345
        assert session.payloads[0]["method"] == "getSlot"

    def test_rpc_error_object_raises(self):
        rpc, _ = rpc_with(FakeResponse(body={"error": {"code": -32009, "message": "missing"}}))
        with pytest.raises(RpcError):
            rpc.make_rpc_request("getTransaction", ["sig"])

    def test_transport_failure_raises(self):
        rpc, _ = rpc_with(requests.ConnectionError("refused"))
        with pytest.raises(RpcError):
            rpc.make_rpc_request("getSlot")

    def test_rate_limit_is_retried(self):
        rpc, session = rpc_with(FakeResponse(429), ok(7))
        assert rpc.make_rpc_request("getSlot", max_retries=2) == 7
        assert len(session.payloads) == 2

    def test_rate_limit_on_last_attempt(self):
        rpc, _ = rpc_with(FakeResponse(429))
        with pytest.raises(RateLimitedError):
            rpc.make_rpc_request("getSlot")

    def test_parsed_transaction_params(self):
        rpc, session = rpc_with(ok(None))
        assert rpc.get_parsed_transaction("sig1") is None
        params = session.payloads[0]["params"]
        assert params[0] == "sig1"
        assert params[1] == {"encoding": "jsonParsed", "commitment": "finalized", "maxSupportedTransactionVersion": 0}

    def test_signature_page_params(self):
        rpc, session = rpc_with(ok([{"signature": "a", "blockTime": 1}]), ok([]))
        assert rpc.get_signatures_for_address("Prog", limit=25) == [{"signature": "a", "blockTime": 1}]
        assert session.payloads[0]["params"] == ["Prog", {"limit": 25, "commitment": "finalized"}]
        rpc.get_signatures_for_address("Prog", limit=25, before="a")
        assert session.payloads[1]["params"][1]["before"] == "a"

    def test_account_data_decodes_base64(self):
        raw = bytes(range(32))
        rpc, _ = rpc_with(ok({"context": {"slot": 1}, "value": {"data": [base64.b64encode(raw).decode(), "base64"]}}))
        assert rpc.get_account_data("Pool") == raw

    def test_malformed_account_data_raises_rpc_error(self):
        rpc, _ = rpc_with(ok({"context": {"slot": 1}, "value": {"data": ["abc", "base64"]}}))
        with pytest.raises(RpcError) as excinfo:
            rpc.get_account_data("Pool")
        assert excinfo.value.method == "getAccountInfo"

    def test_malformed_account_data_reads_as_absent(self):
        rpc, _ = rpc_with(ok({"context": {"slot": 1}, "value": {"data": ["not base64!", "base64"]}}))
        assert LiquidityReader(rpc).fetch("Pool") is None

    def test_missing_account(self):
        rpc, _ = rpc_with(ok({"context": {"slot": 1}, "value": None}))
        assert rpc.get_account_data("Pool") is None

    def test_check_connection(self):
        rpc, _ = rpc_with(ok(99))
        assert rpc.check_connection() == 99

    def test_check_connection_unhealthy(self):
        rpc, _ = rpc_with(*[requests.ConnectionError("refused")] * 3)
        with pytest.raises(ConnectionUnhealthyError):
            rpc.check_connection()


class TestBackoff:

    def test_exponential_delay(self):
        assert [rate_limiter.exponential_backoff_delay(n, base_delay=2.0) for n in (1, 2, 3)] == [4.0, 8.0, 16.0]

    def test_delay_cap(self):
        assert rate_limiter.exponential_backoff_delay(10, base_delay=1.0, max_delay=60.0) == 60.0
