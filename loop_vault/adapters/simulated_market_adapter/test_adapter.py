import pytest

from loop_vault.adapters.simulated_market_adapter.adapter import (
    SimulatedLendingMarket,
    SimulatedPriceOracle,
    SimulatedSwapVenue,
    SimulatedToken,
)
from loop_vault.adapters.simulated_market_adapter.state import (
    SimulatedChain,
    SimulationError,
)
from loop_vault.core.constants.base import MAX_UINT256, PRECISION
from loop_vault.core.engine.types import SwapRequest

COLLATERAL = "0x1000000000000000000000000000000000000001"
BORROW = "0x2000000000000000000000000000000000000002"
POOL = "0x3000000000000000000000000000000000000003"
ROUTER = "0x4000000000000000000000000000000000000004"
WALLET = "0x5000000000000000000000000000000000000005"
OTHER = "0x6000000000000000000000000000000000000006"

ONE = 10**18


@pytest.fixture
def chain():
    chain = SimulatedChain()
    for token in (COLLATERAL, BORROW):
        chain.configure_reserve(token, ltv_bp=5_000, liquidation_threshold_bp=9_000)
        chain.set_price(token, 100_000_000)
        chain.mint(token, POOL, 100 * ONE)
        chain.mint(token, ROUTER, 100 * ONE)
    chain.mint(COLLATERAL, WALLET, 10 * ONE)
    return chain


@pytest.fixture
def collateral(chain):
    return SimulatedToken(chain, COLLATERAL, WALLET)


@pytest.fixture
def debt_token(chain):
    return SimulatedToken(chain, BORROW, WALLET)


@pytest.fixture
def market(chain):
    return SimulatedLendingMarket(chain, POOL, WALLET)


@pytest.fixture
def venue(chain):
    return SimulatedSwapVenue(chain, ROUTER, WALLET)


async def _supply(collateral, market, amount):
    await collateral.approve(POOL, amount)
    await market.supply(COLLATERAL, amount, WALLET)


class TestSimulatedToken:
    @pytest.mark.asyncio
    async def test_transfer_and_transfer_from(self, chain, collateral):
        await collateral.transfer(OTHER, ONE)
        assert await collateral.balance_of(OTHER) == ONE

        owner_view = SimulatedToken(chain, COLLATERAL, OTHER)
        await owner_view.approve(WALLET, ONE)
        await collateral.transfer_from(OTHER, WALLET, ONE)

        assert await collateral.balance_of(OTHER) == 0
        assert await collateral.balance_of(WALLET) == 10 * ONE
        assert await collateral.allowance(OTHER, WALLET) == 0

    @pytest.mark.asyncio
    async def test_transfer_over_balance_reverts(self, collateral):
        with pytest.raises(SimulationError, match="exceeds balance"):
            await collateral.transfer(OTHER, 11 * ONE)

    @pytest.mark.asyncio
    async def test_transfer_from_without_allowance_reverts(self, collateral):
        with pytest.raises(SimulationError, match="insufficient allowance"):
            await collateral.transfer_from(POOL, WALLET, 1)


class TestSimulatedLendingMarket:
    def test_adapter_type(self, market):
        assert market.adapter_type == "SIMULATED"
        assert market.address == POOL

    @pytest.mark.asyncio
    async def test_supply_consumes_allowance(self, chain, collateral, market):
        await _supply(collateral, market, 2 * ONE)

        assert chain.supplied_of(WALLET, COLLATERAL) == 2 * ONE
        assert await collateral.balance_of(WALLET) == 8 * ONE
        assert await collateral.allowance(WALLET, POOL) == 0

    @pytest.mark.asyncio
    async def test_supply_without_allowance_reverts(self, market):
        with pytest.raises(SimulationError, match="insufficient allowance"):
            await market.supply(COLLATERAL, ONE, WALLET)

    @pytest.mark.asyncio
    async def test_supply_unlisted_reserve_reverts(self, market):
        with pytest.raises(SimulationError, match="not listed"):
            await market.supply(OTHER, ONE, WALLET)

    @pytest.mark.asyncio
    async def test_borrow_up_to_ltv(self, collateral, debt_token, market):
        await _supply(collateral, market, 2 * ONE)
        await market.borrow(BORROW, ONE, 2, WALLET)

        assert await debt_token.balance_of(WALLET) == ONE
        assert await market.user_reserve_debt(BORROW, WALLET) == ONE

        snapshot = await market.account_snapshot(WALLET)
        assert snapshot.collateral_value == 200_000_000
        assert snapshot.debt_value == 100_000_000
        assert snapshot.available_borrow_value == 0
        assert snapshot.ltv_bp == 5_000
        assert snapshot.liquidation_threshold_bp == 9_000
        assert snapshot.health_factor == 18 * PRECISION // 10

    @pytest.mark.asyncio
    async def test_borrow_over_ltv_reverts(self, collateral, market):
        await _supply(collateral, market, 2 * ONE)
        with pytest.raises(SimulationError, match="exceeds available"):
            await market.borrow(BORROW, ONE + ONE // 10, 2, WALLET)

    @pytest.mark.asyncio
    async def test_borrow_rejects_stable_rate_and_delegation(
        self, collateral, market
    ):
        await _supply(collateral, market, 2 * ONE)
        with pytest.raises(SimulationError, match="rate mode"):
            await market.borrow(BORROW, ONE, 1, WALLET)
        with pytest.raises(SimulationError, match="credit delegation"):
            await market.borrow(BORROW, ONE, 2, OTHER)

    @pytest.mark.asyncio
    async def test_snapshot_without_debt(self, collateral, market):
        await _supply(collateral, market, ONE)
        snapshot = await market.account_snapshot(WALLET)
        assert snapshot.health_factor == MAX_UINT256
        assert snapshot.available_borrow_value == 50_000_000

    @pytest.mark.asyncio
    async def test_withdraw_below_health_floor_reverts(
        self, chain, collateral, market
    ):
        await _supply(collateral, market, 2 * ONE)
        await market.borrow(BORROW, ONE, 2, WALLET)

        with pytest.raises(SimulationError, match="health factor"):
            await market.withdraw(COLLATERAL, ONE, WALLET)
        assert chain.supplied_of(WALLET, COLLATERAL) == 2 * ONE

        withdrawn = await market.withdraw(COLLATERAL, ONE // 2, WALLET)
        assert withdrawn == ONE // 2
        assert chain.supplied_of(WALLET, COLLATERAL) == 3 * ONE // 2

    @pytest.mark.asyncio
    async def test_withdraw_max_returns_full_balance(self, collateral, market):
        await _supply(collateral, market, 3 * ONE)

        withdrawn = await market.withdraw(COLLATERAL, MAX_UINT256, OTHER)

        assert withdrawn == 3 * ONE
        assert await collateral.balance_of(OTHER) == 3 * ONE

    @pytest.mark.asyncio
    async def test_withdraw_over_supplied_reverts(self, collateral, market):
        await _supply(collateral, market, ONE)
        with pytest.raises(SimulationError, match="exceeds supplied"):
            await market.withdraw(COLLATERAL, 2 * ONE, WALLET)

    @pytest.mark.asyncio
    async def test_repay_is_capped_at_debt(self, chain, collateral, debt_token, market):
        await _supply(collateral, market, 2 * ONE)
        await market.borrow(BORROW, ONE, 2, WALLET)
        chain.mint(BORROW, WALLET, ONE)
        await debt_token.approve(POOL, 2 * ONE)

        paid = await market.repay(BORROW, 2 * ONE, 2, WALLET)

        assert paid == ONE
        assert await market.user_reserve_debt(BORROW, WALLET) == 0
        assert await debt_token.balance_of(WALLET) == ONE
        assert await debt_token.allowance(WALLET, POOL) == ONE

        with pytest.raises(SimulationError, match="no debt"):
            await market.repay(BORROW, ONE, 2, WALLET)

    @pytest.mark.asyncio
    async def test_zero_amounts_revert(self, collateral, market):
        with pytest.raises(SimulationError, match="invalid amount"):
            await market.supply(COLLATERAL, 0, WALLET)
        with pytest.raises(SimulationError, match="invalid amount"):
            await market.borrow(BORROW, 0, 2, WALLET)
        with pytest.raises(SimulationError, match="invalid amount"):
            await market.withdraw(COLLATERAL, 0, WALLET)
        # MAX with nothing supplied resolves to zero
        with pytest.raises(SimulationError, match="invalid amount"):
            await market.withdraw(COLLATERAL, MAX_UINT256, WALLET)
        with pytest.raises(SimulationError, match="invalid amount"):
            await market.repay(BORROW, 0, 2, WALLET)


class TestSimulatedSwapVenue:
    def _request(self, amount_in, *, fee=0, amount_out_min=0):
        return SwapRequest(
            token_in=COLLATERAL,
            token_out=BORROW,
            fee=fee,
            recipient=WALLET,
            amount_in=amount_in,
            amount_out_min=amount_out_min,
            price_limit=0,
        )

    @pytest.mark.asyncio
    async def test_swap_applies_price_and_fee(
        self, chain, collateral, debt_token, venue
    ):
        chain.set_price(COLLATERAL, 200_000_000)
        await collateral.approve(ROUTER, ONE)

        amount_out = await venue.swap_exact_in_single(self._request(ONE, fee=3_000))

        assert amount_out == 2 * ONE * 997 // 1000
        assert await debt_token.balance_of(WALLET) == amount_out
        assert await collateral.balance_of(WALLET) == 9 * ONE
        assert await collateral.allowance(WALLET, ROUTER) == 0

    @pytest.mark.asyncio
    async def test_swap_below_min_out_reverts(self, collateral, venue):
        await collateral.approve(ROUTER, ONE)
        with pytest.raises(SimulationError, match="too little received"):
            await venue.swap_exact_in_single(
                self._request(ONE, fee=500, amount_out_min=ONE)
            )
        assert await collateral.balance_of(WALLET) == 10 * ONE

    @pytest.mark.asyncio
    async def test_swap_rejects_zero_and_bad_fee(self, collateral, venue):
        await collateral.approve(ROUTER, ONE)
        with pytest.raises(SimulationError, match="amount in is zero"):
            await venue.swap_exact_in_single(self._request(0))
        with pytest.raises(SimulationError, match="invalid fee tier"):
            await venue.swap_exact_in_single(self._request(ONE, fee=1_000_000))

    def test_quote(self, venue):
        assert venue.quote(COLLATERAL, BORROW, 100, ONE) == ONE * 9_999 // 10_000


class TestSimulatedPriceOracleAndState:
    @pytest.mark.asyncio
    async def test_oracle_reads_chain_prices(self, chain):
        oracle = SimulatedPriceOracle(chain)
        assert await oracle.price(COLLATERAL) == 100_000_000
        with pytest.raises(SimulationError, match="no price"):
            await oracle.price(OTHER)

    @pytest.mark.asyncio
    async def test_snapshot_restore(self, chain, collateral, market):
        snapshot = await chain.snapshot()

        await _supply(collateral, market, ONE)
        await market.borrow(BORROW, ONE // 4, 2, WALLET)
        chain.set_price(BORROW, 1)

        await chain.restore(snapshot)

        assert chain.supplied_of(WALLET, COLLATERAL) == 0
        assert chain.debt_of(WALLET, BORROW) == 0
        assert chain.balance(COLLATERAL, WALLET) == 10 * ONE
        assert chain.price(BORROW) == 100_000_000

    @pytest.mark.asyncio
    async def test_snapshot_is_isolated_from_later_writes(self, chain):
        snapshot = await chain.snapshot()
        chain.mint(COLLATERAL, WALLET, ONE)
        await chain.restore(snapshot)
        chain.mint(COLLATERAL, WALLET, ONE)
        await chain.restore(snapshot)
        assert chain.balance(COLLATERAL, WALLET) == 10 * ONE

    def test_lowercase_keys_are_normalized(self, chain):
        chain.mint(COLLATERAL.lower(), OTHER.lower(), 5)
        assert chain.balance(COLLATERAL, OTHER) == 5
