import struct
import time

import pytest

from solana_pool_tracker.constants import RAYDIUM_LP_V4_PROGRAM_ID
from solana_pool_tracker.errors import RpcError

SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
SYSTEM_PROGRAM = "11111111111111111111111111111111"


class FakeRpc:
    """In-memory stand-in for SolanaRpc."""

    def __init__(self):
        self.transactions = {}
        self.accounts = {}
        self.pages = []
        self.transaction_calls = []
        self.account_calls = []
        self.page_calls = []

    def get_parsed_transaction(self, signature, commitment="finalized"):
        self.transaction_calls.append(signature)
        result = self.transactions.get(signature)
        if isinstance(result, Exception):
            raise result
        return result

    def get_account_data(self, address, commitment="finalized"):
        self.account_calls.append(address)
        result = self.accounts.get(address)
        if isinstance(result, Exception):
            raise result
        return result

    def get_signatures_for_address(self, address, limit, before=None, commitment="finalized"):
        self.page_calls.append({"address": address, "limit": limit, "before": before, "commitment": commitment})
        if not self.pages:
            return []
        result = self.pages.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def pool_state_bytes(status, base, quote, lp, padding=0):
    return struct.pack('<4Q', status, base, quote, lp) + bytes(padding)


def parsed_tx(accounts, program_id=RAYDIUM_LP_V4_PROGRAM_ID, extra_instructions=()):
    """A getTransaction jsonParsed result with one partially decoded instruction."""
    instructions = list(extra_instructions) + [
        {"programId": program_id, "accounts": list(accounts), "data": "4YdkaZ", "stackHeight": None},
    ]
    return {
        "slot": 250000000,
        "blockTime": 1704067200,
        "meta": {"err": None, "logMessages": ["Program log: initialize2: InitializeInstruction2"]},
        "transaction": {
            "signatures": ["sig"],
            "message": {"accountKeys": [], "instructions": instructions},
        },
    }


def filler_accounts(count):
    return [f"Filler{i}" for i in range(count)]


def wait_for(condition, timeout=2.0, interval=0.005):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return condition()


@pytest.fixture
def fake_rpc():
    return FakeRpc()


@pytest.fixture
def rpc_error():
    return RpcError("getTransaction", "connection reset")
