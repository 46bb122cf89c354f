"""
tx_resolver.py

Recover the two mints of a pool creation from its transaction.

The pool initialization instruction carries no decoded data, only an ordered
account list, so the mints are picked out by position. Positions live in a
named layout per program version.
"""

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from solana_pool_tracker.constants import RAYDIUM_LP_V4_PROGRAM_ID
from solana_pool_tracker.errors import RpcError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstructionAccountLayout:
    """Which account index holds which role for one instruction version."""
    name: str
    version: int
    roles: Mapping[str, int] = field(default_factory=dict)

    @property
    def min_accounts(self) -> int:
        return max(self.roles.values()) + 1

    def account_for(self, role: str, accounts: list) -> str:
        return accounts[self.roles[role]]


# raydium-amm initialize2: accounts 8 and 9 are the coin and pc mints
RAYDIUM_AMM_V4_INITIALIZE2 = InstructionAccountLayout(
    name="raydium_amm_v4.initialize2",
    version=4,
    roles={"token_a": 8, "token_b": 9},
)


def find_program_instruction(tx: dict, program_id: str) -> Optional[dict]:
    """
    First top-level instruction for program_id that still exposes its accounts.

    Instructions the node managed to decode fully carry "parsed" instead of
    "accounts" and are skipped.
    """
    message = ((tx or {}).get("transaction") or {}).get("message") or {}
    for ix in message.get("instructions", []):
        if ix.get("programId") == program_id and "accounts" in ix:
            return ix
    return None


class TransactionResolver:
    def __init__(self, rpc, program_id: str = RAYDIUM_LP_V4_PROGRAM_ID,
                 layout: InstructionAccountLayout = RAYDIUM_AMM_V4_INITIALIZE2):
        self.rpc = rpc
        self.program_id = program_id
        self.layout = layout

    def resolve(self, signature: str) -> Optional[Tuple[str, str]]:
        """
        Fetch the transaction and return (token_a, token_b), or None.

        Missing transactions, unrelated instructions and short account lists
        are expected and only logged.
        """
        try:
            tx = self.rpc.get_parsed_transaction(signature)
        except RpcError as e:
            logger.warning(f"Error fetching transaction {signature}: {e}")
            return None

        if not tx or not tx.get("transaction"):
            logger.warning(f"Transaction not found: {signature}")
            return None

        return self.extract_mints(tx, signature)

    def extract_mints(self, tx: dict, signature: str = "") -> Optional[Tuple[str, str]]:
        instruction = find_program_instruction(tx, self.program_id)
        if instruction is None:
            logger.warning(f"No {self.layout.name} instruction found in: {signature}")
            return None

        accounts = instruction.get("accounts") or []
        if len(accounts) < self.layout.min_accounts:
            logger.warning(
                f"Invalid accounts array length in {signature}: "
                f"{len(accounts)} < {self.layout.min_accounts}"
            )
            return None

        token_a = str(self.layout.account_for("token_a", accounts))
        token_b = str(self.layout.account_for("token_b", accounts))
        logger.info(f"New liquidity pool in {signature}: {token_a} / {token_b}")
        return token_a, token_b
