"""
liquidity.py

Read a pool state account and decode its reserves.

The state is read as four little-endian u64 at offset 0:
status, base reserve, quote reserve, LP supply. Check these offsets against
the program's current account schema before trusting decoded values on a
live network.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Optional

from solana_pool_tracker.errors import RpcError

logger = logging.getLogger(__name__)

LIQUIDITY_STATE_LAYOUT = struct.Struct('<4Q')
STATUS_ACTIVE = 1


@dataclass(frozen=True)
class LiquiditySnapshot:
    base_reserve: int
    quote_reserve: int
    lp_supply: int
    status: int

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def status_label(self) -> str:
        return 'Active' if self.is_active else 'Inactive'


def decode_liquidity_state(data: bytes) -> Optional[LiquiditySnapshot]:
    """
    Decode the first 32 bytes of a pool state account.

    Returns None for buffers shorter than the layout, never a partial snapshot.
    """
    if data is None or len(data) < LIQUIDITY_STATE_LAYOUT.size:
        return None
    status, base_reserve, quote_reserve, lp_supply = LIQUIDITY_STATE_LAYOUT.unpack_from(data, 0)
    return LiquiditySnapshot(
        base_reserve=base_reserve,
        quote_reserve=quote_reserve,
        lp_supply=lp_supply,
        status=status,
    )


class LiquidityReader:
    def __init__(self, rpc):
        self.rpc = rpc

    def fetch(self, pool_address: str) -> Optional[LiquiditySnapshot]:
        """
        Fetch and decode a pool state account once.

        Remote failures, missing accounts and undersized buffers all return None.
        """
        pool_address = str(pool_address)
        try:
            data = self.rpc.get_account_data(pool_address)
        except RpcError as e:
            logger.warning(f"Error fetching liquidity for pool {pool_address}: {e}")
            return None

        if not data:
            logger.info(f"No data found for pool address: {pool_address}")
            return None

        snapshot = decode_liquidity_state(data)
        if snapshot is None:
            logger.info(f"Pool account {pool_address} too small for liquidity layout ({len(data)} bytes)")
        return snapshot
