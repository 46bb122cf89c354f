"""
solana_rpc.py

JSON-RPC transport for the Solana HTTP API: rate limited requests plus the
handful of methods the tracker needs (transactions, signature history,
account data, current slot).
"""

import base64
import binascii
import logging
import itertools
from typing import Any, Optional

import requests

from solana_pool_tracker.constants import COMMITMENT_FINALIZED
from solana_pool_tracker.errors import RpcError, RateLimitedError, ConnectionUnhealthyError
from solana_pool_tracker.utils import rate_limiter as net

logger = logging.getLogger(__name__)


class SolanaRpc:
    """
    Shared, stateless handle on a Solana RPC endpoint.

    Every call goes through a token bucket so the whole process stays under
    the configured requests per second, whichever thread makes the call.
    """

    def __init__(self, rpc_url: str, max_requests_per_second: int = 8,
                 session: Optional[requests.Session] = None, timeout: float = 30):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.rate_limiter = net.create_rate_limiter(max_requests_per_second)
        self._ids = itertools.count(1)

    def make_rpc_request(self, method: str, params: Optional[list] = None, max_retries: int = 1) -> Any:
        """
        Make a Solana RPC request with rate limiting.

        HTTP 429 responses are retried with exponential backoff while attempts
        remain; any other failure raises immediately.

        Args:
            method: JSON-RPC method name.
            params: Positional params for the method.
            max_retries: Total number of attempts.

        Returns:
            The "result" member of the JSON-RPC response.

        Raises:
            RateLimitedError: still rate limited on the last attempt.
            RpcError: transport failure or an RPC error object.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        for attempt in range(max_retries):
            self.rate_limiter.acquire()
            try:
                response = self.session.post(self.rpc_url, json=payload, timeout=self.timeout)
            except requests.RequestException as e:
                raise RpcError(method, f"request failed: {e}") from e

            if response.status_code == 429:
                logger.warning(f"Rate limited on {method}, attempt {attempt + 1}/{max_retries}")
                if attempt < max_retries - 1:
                    net.exponential_backoff_sleep(attempt)
                    continue
                raise RateLimitedError(method, "rate limited (429)")

            try:
                response.raise_for_status()
                data = response.json()
            except (requests.HTTPError, ValueError) as e:
                raise RpcError(method, str(e)) from e

            if 'error' in data:
                raise RpcError(method, f"RPC error: {data['error']}")

            return data.get('result')

        raise RpcError(method, "no attempts made")

    def get_slot(self) -> int:
        return self.make_rpc_request("getSlot", max_retries=3)

    def check_connection(self) -> int:
        """
        Verify the endpoint answers, returning the current slot.

        Raises:
            ConnectionUnhealthyError: the endpoint could not report a slot.
        """
        try:
            slot = self.get_slot()
        except RpcError as e:
            raise ConnectionUnhealthyError(f"Cannot reach {self.rpc_url}: {e}") from e
        if slot is None:
            raise ConnectionUnhealthyError(f"{self.rpc_url} returned no slot")
        return slot

    def get_parsed_transaction(self, signature: str, commitment: str = COMMITMENT_FINALIZED) -> Optional[dict]:
        """
        Args:
            signature (str): The tx signature.

        Returns:
            dict or None: The jsonParsed tx, or None if the node does not know it.
        """
        return self.make_rpc_request("getTransaction", [signature, {
            "encoding": "jsonParsed",
            "commitment": commitment,
            "maxSupportedTransactionVersion": 0,
        }])

    def get_signatures_for_address(self, address: str, limit: int, before: Optional[str] = None,
                                   commitment: str = COMMITMENT_FINALIZED) -> list:
        """
        One page of signature history for an address, newest first.

        Each entry carries at least "signature" and "blockTime" (which may be None).
        """
        options = {"limit": limit, "commitment": commitment}
        if before is not None:
            options["before"] = before
        return self.make_rpc_request("getSignaturesForAddress", [address, options]) or []

    def get_account_data(self, address: str, commitment: str = COMMITMENT_FINALIZED) -> Optional[bytes]:
        """
        Raw account bytes, or None when the account does not exist.
        """
        result = self.make_rpc_request("getAccountInfo", [address, {
            "encoding": "base64",
            "commitment": commitment,
        }])
        value = (result or {}).get("value")
        if not value:
            return None
        data = value.get("data")
        if not data:
            return None
        encoded, encoding = data[0], data[1]
        if encoding != "base64":
            raise RpcError("getAccountInfo", f"unexpected account encoding {encoding}")
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise RpcError("getAccountInfo", f"malformed account data: {e}") from e
