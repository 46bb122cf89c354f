"""
pool_keys.py

Derive the pool state address of a Raydium pool from its two mints.
"""

from dataclasses import dataclass

from solders.pubkey import Pubkey

from solana_pool_tracker.constants import POOL_SEED, RAYDIUM_LP_V4_PROGRAM_ID
from solana_pool_tracker.errors import InvalidTokenIdentity


@dataclass(frozen=True)
class PoolIdentity:
    token_a: str
    token_b: str
    pool_address: str


def to_pubkey(value: str | Pubkey) -> Pubkey:
    """Parse a base-58 key, rejecting anything that is not exactly 32 bytes."""
    if isinstance(value, Pubkey):
        return value
    try:
        return Pubkey.from_string(value)
    except (ValueError, TypeError) as e:
        raise InvalidTokenIdentity(f"Invalid public key {value!r}: {e}") from e


def derive_pool_address(token_a: str | Pubkey, token_b: str | Pubkey,
                        program_id: str | Pubkey = RAYDIUM_LP_V4_PROGRAM_ID) -> Pubkey:
    """
    Program derived address seeded with [b"Pool", token_a, token_b].

    The mints are used in the order given; (a, b) and (b, a) are different pools.
    """
    seeds = [POOL_SEED, bytes(to_pubkey(token_a)), bytes(to_pubkey(token_b))]
    pool_address, _bump = Pubkey.find_program_address(seeds, to_pubkey(program_id))
    return pool_address


def derive_pool_identity(token_a: str, token_b: str,
                         program_id: str | Pubkey = RAYDIUM_LP_V4_PROGRAM_ID) -> PoolIdentity:
    pool_address = derive_pool_address(token_a, token_b, program_id)
    return PoolIdentity(token_a=str(token_a), token_b=str(token_b), pool_address=str(pool_address))
