import pytest
from solders.pubkey import Pubkey

from solana_pool_tracker.constants import RAYDIUM_LP_V4_PROGRAM_ID
from solana_pool_tracker.errors import InvalidTokenIdentity
from solana_pool_tracker.pools.pool_keys import PoolIdentity, derive_pool_address, derive_pool_identity

from conftest import SOL_MINT, USDC_MINT, USDT_MINT, TOKEN_PROGRAM


class TestDerivePoolAddress:

    def test_deterministic(self):
        first = derive_pool_address(SOL_MINT, USDC_MINT, RAYDIUM_LP_V4_PROGRAM_ID)
        second = derive_pool_address(SOL_MINT, USDC_MINT, RAYDIUM_LP_V4_PROGRAM_ID)
        assert first == second
        assert isinstance(first, Pubkey)

    def test_matches_program_derived_address(self):
        expected, _ = Pubkey.find_program_address(
            [b"Pool", bytes(Pubkey.from_string(SOL_MINT)), bytes(Pubkey.from_string(USDC_MINT))],
            Pubkey.from_string(RAYDIUM_LP_V4_PROGRAM_ID),
        )
        assert derive_pool_address(SOL_MINT, USDC_MINT) == expected

    def test_each_input_changes_address(self):
        base = derive_pool_address(SOL_MINT, USDC_MINT, RAYDIUM_LP_V4_PROGRAM_ID)
        assert derive_pool_address(USDT_MINT, USDC_MINT, RAYDIUM_LP_V4_PROGRAM_ID) != base
        assert derive_pool_address(SOL_MINT, USDT_MINT, RAYDIUM_LP_V4_PROGRAM_ID) != base
        assert derive_pool_address(SOL_MINT, USDC_MINT, TOKEN_PROGRAM) != base

    def test_pair_order_is_not_canonicalized(self):
        assert derive_pool_address(SOL_MINT, USDC_MINT) != derive_pool_address(USDC_MINT, SOL_MINT)

    def test_accepts_pubkeys(self):
        assert derive_pool_address(Pubkey.from_string(SOL_MINT), Pubkey.from_string(USDC_MINT)) == \
            derive_pool_address(SOL_MINT, USDC_MINT)

    @pytest.mark.parametrize("bad", ["not-a-key", "", "1111"])
    def test_malformed_identity_raises(self, bad):
        with pytest.raises(InvalidTokenIdentity):
            derive_pool_address(bad, USDC_MINT)

    def test_invalid_identity_is_value_error(self):
        with pytest.raises(ValueError):
            derive_pool_address(SOL_MINT, "0OIl")


class TestDerivePoolIdentity:

    def test_identity_keeps_call_order(self):
        identity = derive_pool_identity(SOL_MINT, USDC_MINT)
        assert identity == PoolIdentity(
            token_a=SOL_MINT,
            token_b=USDC_MINT,
            pool_address=str(derive_pool_address(SOL_MINT, USDC_MINT)),
        )

    def test_identity_is_hashable(self):
        registry = {derive_pool_identity(SOL_MINT, USDC_MINT): "tracked"}
        assert registry[derive_pool_identity(SOL_MINT, USDC_MINT)] == "tracked"
