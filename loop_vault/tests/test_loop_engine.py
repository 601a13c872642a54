from unittest.mock import AsyncMock, MagicMock

import pytest

from loop_vault.adapters.simulated_market_adapter.state import SimulationError
from loop_vault.core.engine.loop import LoopEngine
from loop_vault.core.engine.types import LoopParams
from loop_vault.core.errors import SlippageExceeded, ZeroNumOfLoop
from loop_vault.strategies.leveraged_loop_strategy.constants import (
    SIM_BORROW_TOKEN,
    SIM_COLLATERAL_TOKEN,
    SIM_LENDING_POOL,
    SIM_SWAP_ROUTER,
    SIM_VAULT,
)
from loop_vault.strategies.leveraged_loop_strategy.strategy import deploy_simulation

ONE = 10**18


def _funded(settings=None):
    deployment = deploy_simulation(settings)
    deployment.chain.mint(SIM_COLLATERAL_TOKEN, SIM_VAULT, ONE)
    return deployment


def _mock_engine():
    token = MagicMock(address=SIM_COLLATERAL_TOKEN, approve=AsyncMock())
    borrow_token = MagicMock(address=SIM_BORROW_TOKEN, approve=AsyncMock())
    market = MagicMock(
        address=SIM_LENDING_POOL, supply=AsyncMock(), borrow=AsyncMock()
    )
    venue = MagicMock(address=SIM_SWAP_ROUTER, swap_exact_in_single=AsyncMock())
    position = MagicMock(available_borrow_in_quote=AsyncMock(return_value=0))
    engine = LoopEngine(
        vault_address=SIM_VAULT,
        market=market,
        venue=venue,
        position=position,
        collateral_token=token,
        borrow_token=borrow_token,
    )
    return engine, market, venue, token, borrow_token


@pytest.mark.asyncio
async def test_zero_loops_fails_before_any_call():
    engine, market, venue, token, borrow_token = _mock_engine()

    with pytest.raises(ZeroNumOfLoop):
        await engine.run(ONE, LoopParams(num_of_loop=0))

    market.supply.assert_not_awaited()
    market.borrow.assert_not_awaited()
    venue.swap_exact_in_single.assert_not_awaited()
    token.approve.assert_not_awaited()
    borrow_token.approve.assert_not_awaited()


@pytest.mark.asyncio
async def test_allowance_covers_every_supply_and_is_reset():
    engine, market, venue, token, borrow_token = _mock_engine()
    engine.position.available_borrow_in_quote = AsyncMock(return_value=ONE // 2)
    venue.swap_exact_in_single = AsyncMock(return_value=ONE // 2)

    await engine.run(ONE, LoopParams(num_of_loop=4))

    assert token.approve.await_args_list[0].args == (SIM_LENDING_POOL, 4 * ONE)
    assert token.approve.await_args_list[-1].args == (SIM_LENDING_POOL, 0)
    assert borrow_token.approve.await_count == 8
    assert market.supply.await_count == 4


@pytest.mark.asyncio
async def test_three_loops_on_simulated_market():
    deployment = _funded()
    engine = deployment.controller.loop_engine

    report = await engine.run(ONE, LoopParams(num_of_loop=3))

    assert report.iterations == 3
    assert report.idle_collateral == 125 * ONE // 1_000
    assert [op.type for op in report.operations] == ["SUPPLY", "BORROW", "SWAP"] * 3
    assert [op.amount for op in report.operations if op.type == "BORROW"] == [
        ONE // 2,
        ONE // 4,
        ONE // 8,
    ]
    assert {op.iteration for op in report.operations} == {0, 1, 2}
    assert report.operations[0].adapter == "SimulatedLendingMarket"
    assert report.operations[2].adapter == "SimulatedSwapVenue"

    chain = deployment.chain
    assert chain.balance(SIM_BORROW_TOKEN, SIM_VAULT) == 0
    assert chain.balance(SIM_COLLATERAL_TOKEN, SIM_VAULT) == report.idle_collateral
    assert chain.allowance(SIM_COLLATERAL_TOKEN, SIM_VAULT, SIM_LENDING_POOL) == 0
    assert chain.allowance(SIM_BORROW_TOKEN, SIM_VAULT, SIM_SWAP_ROUTER) == 0


@pytest.mark.asyncio
async def test_pool_fee_reduces_swap_output():
    deployment = _funded({"pool_fee": 3_000})

    report = await deployment.controller.loop_engine.run(
        ONE, LoopParams(num_of_loop=1)
    )

    swap = report.operations[-1]
    assert swap.from_amount == ONE // 2
    assert swap.to_amount == ONE // 2 * 997 // 1_000
    assert deployment.chain.balance(SIM_BORROW_TOKEN, SIM_VAULT) == 0


@pytest.mark.asyncio
async def test_swap_revert_still_resets_allowances():
    deployment = _funded()

    with pytest.raises(SimulationError, match="too little received"):
        await deployment.controller.loop_engine.run(
            ONE, LoopParams(num_of_loop=2, swap_min_out=10 * ONE)
        )

    chain = deployment.chain
    assert chain.allowance(SIM_COLLATERAL_TOKEN, SIM_VAULT, SIM_LENDING_POOL) == 0
    assert chain.allowance(SIM_BORROW_TOKEN, SIM_VAULT, SIM_SWAP_ROUTER) == 0


@pytest.mark.asyncio
async def test_slippage_floor_is_checked_per_swap():
    deployment = _funded()

    with pytest.raises(SlippageExceeded):
        await deployment.controller.loop_engine.run(
            ONE, LoopParams(num_of_loop=1, swap_min_out=ONE // 4, slippage_bp=0)
        )
