from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from loop_vault.adapters.aave_v3_adapter.adapter import (
    AaveV3LendingMarket,
    AaveV3PriceOracle,
)
from loop_vault.adapters.simulated_market_adapter.adapter import (
    SimulatedLendingMarket,
    SimulatedPriceOracle,
    SimulatedSwapVenue,
    SimulatedToken,
)
from loop_vault.adapters.simulated_market_adapter.state import SimulatedChain
from loop_vault.adapters.token_adapter.adapter import Erc20TokenAdapter
from loop_vault.adapters.uniswap_adapter.adapter import UniswapV3SwapVenue
from loop_vault.core.adapters.decorators import status_tuple
from loop_vault.core.config import get_simulation_settings, get_strategy_settings
from loop_vault.core.constants.base import ALLOCATOR_ROLE, MANAGER_ROLE
from loop_vault.core.engine.controller import StrategyController
from loop_vault.core.engine.interfaces import (
    AccessControl,
    Checkpointable,
    Erc20Token,
    LendingMarket,
    PriceOracle,
    SwapVenue,
)
from loop_vault.core.engine.loop import LoopEngine
from loop_vault.core.engine.position import PositionQuery
from loop_vault.core.engine.types import LoopParams, StrategyFlags
from loop_vault.core.engine.unwind import UnwindEngine
from loop_vault.core.strategies.Strategy import StatusDict, StatusTuple, Strategy
from loop_vault.core.utils.evm_snapshot import EvmSnapshotCheckpoint
from loop_vault.core.vault.access import RoleRegistry
from loop_vault.core.vault.accounting import ShareLedger
from loop_vault.strategies.leveraged_loop_strategy.constants import (
    DEFAULT_NUM_OF_LOOP,
    DEFAULT_SLIPPAGE_BP,
    MIN_HEALTHY_FACTOR,
    SIM_BORROW_TOKEN,
    SIM_COLLATERAL_TOKEN,
    SIM_DEPOSITOR,
    SIM_LENDING_POOL,
    SIM_MANAGER,
    SIM_SWAP_ROUTER,
    SIM_VAULT,
)


def build_controller(
    *,
    vault_address: str,
    market: LendingMarket,
    venue: SwapVenue,
    oracle: PriceOracle,
    collateral_token: Erc20Token,
    borrow_token: Erc20Token,
    access: AccessControl,
    checkpoints: list[Checkpointable] | None = None,
    has_allocators: bool = True,
    pool_fee: int,
    rate_mode: int,
) -> StrategyController:
    """Wire the position view, both engines and a share ledger around one vault."""
    position = PositionQuery(
        market, oracle, vault_address, collateral_token.address, borrow_token.address
    )
    ledger = ShareLedger(vault_address, collateral_token)
    engine_kwargs = {
        "vault_address": vault_address,
        "market": market,
        "venue": venue,
        "position": position,
        "collateral_token": collateral_token,
        "borrow_token": borrow_token,
        "pool_fee": pool_fee,
        "rate_mode": rate_mode,
    }
    return StrategyController(
        vault_address=vault_address,
        vault=ledger,
        access=access,
        position=position,
        loop_engine=LoopEngine(**engine_kwargs),
        unwind_engine=UnwindEngine(oracle=oracle, **engine_kwargs),
        collateral_token=collateral_token,
        participants=[*(checkpoints or []), ledger],
        flags=StrategyFlags(has_allocators=has_allocators),
    )


@dataclass
class SimulatedDeployment:
    chain: SimulatedChain
    controller: StrategyController
    access: RoleRegistry
    market: SimulatedLendingMarket
    venue: SimulatedSwapVenue
    oracle: SimulatedPriceOracle
    collateral_token: SimulatedToken
    borrow_token: SimulatedToken
    depositor_collateral: SimulatedToken


def deploy_simulation(settings: dict[str, Any] | None = None) -> SimulatedDeployment:
    """Seed a fresh simulated chain and wire a controller onto it.

    The depositor holds collateral and has approved the vault for it; the
    market and swap router hold liquidity of both assets.
    """
    settings = {**get_simulation_settings(), **(settings or {})}
    chain = SimulatedChain()
    for token in (SIM_COLLATERAL_TOKEN, SIM_BORROW_TOKEN):
        chain.configure_reserve(
            token,
            ltv_bp=settings["ltv_bp"],
            liquidation_threshold_bp=settings["liquidation_threshold_bp"],
        )
        chain.mint(token, SIM_LENDING_POOL, settings["market_liquidity"])
        chain.mint(token, SIM_SWAP_ROUTER, settings["venue_liquidity"])
    chain.set_price(SIM_COLLATERAL_TOKEN, settings["collateral_price"])
    chain.set_price(SIM_BORROW_TOKEN, settings["borrow_price"])
    chain.mint(SIM_COLLATERAL_TOKEN, SIM_DEPOSITOR, settings["depositor_balance"])
    chain.set_allowance(
        SIM_COLLATERAL_TOKEN, SIM_DEPOSITOR, SIM_VAULT, settings["depositor_balance"]
    )

    collateral_token = SimulatedToken(chain, SIM_COLLATERAL_TOKEN, SIM_VAULT)
    borrow_token = SimulatedToken(chain, SIM_BORROW_TOKEN, SIM_VAULT)
    market = SimulatedLendingMarket(chain, SIM_LENDING_POOL, SIM_VAULT)
    venue = SimulatedSwapVenue(chain, SIM_SWAP_ROUTER, SIM_VAULT)
    oracle = SimulatedPriceOracle(chain)
    access = RoleRegistry(
        {ALLOCATOR_ROLE: [SIM_DEPOSITOR], MANAGER_ROLE: [SIM_MANAGER]}
    )

    controller = build_controller(
        vault_address=SIM_VAULT,
        market=market,
        venue=venue,
        oracle=oracle,
        collateral_token=collateral_token,
        borrow_token=borrow_token,
        access=access,
        checkpoints=[chain],
        has_allocators=settings["has_allocators"],
        pool_fee=settings["pool_fee"],
        rate_mode=get_strategy_settings()["rate_mode"],
    )
    return SimulatedDeployment(
        chain=chain,
        controller=controller,
        access=access,
        market=market,
        venue=venue,
        oracle=oracle,
        collateral_token=collateral_token,
        borrow_token=borrow_token,
        depositor_collateral=SimulatedToken(
            chain, SIM_COLLATERAL_TOKEN, SIM_DEPOSITOR
        ),
    )


def build_aave_controller(
    config: dict[str, Any],
    signing_callback: Callable[[dict], Awaitable[bytes]] | None = None,
) -> StrategyController:
    """Controller over Aave v3 and Uniswap v3 for the configured strategy wallet.

    Every operation runs inside an ``evm_snapshot`` checkpoint, so this is only
    atomic against a fork node that supports snapshots.
    """
    settings = get_strategy_settings()
    chain_id = int(settings["chain_id"])
    vault_address = (config.get("strategy_wallet") or {}).get("address")
    if not vault_address:
        raise ValueError("strategy_wallet address not found in config")

    def token(address: str) -> Erc20TokenAdapter:
        return Erc20TokenAdapter(
            address,
            chain_id=chain_id,
            wallet_address=vault_address,
            signing_callback=signing_callback,
        )

    access = RoleRegistry(config.get("roles") or {})
    return build_controller(
        vault_address=vault_address,
        market=AaveV3LendingMarket(
            chain_id=chain_id,
            wallet_address=vault_address,
            signing_callback=signing_callback,
        ),
        venue=UniswapV3SwapVenue(
            chain_id=chain_id,
            wallet_address=vault_address,
            signing_callback=signing_callback,
        ),
        oracle=AaveV3PriceOracle(chain_id=chain_id),
        collateral_token=token(settings["collateral_asset"]),
        borrow_token=token(settings["borrow_asset"]),
        access=access,
        checkpoints=[EvmSnapshotCheckpoint(chain_id)],
        has_allocators=bool(settings["has_allocators"]),
        pool_fee=int(settings["pool_fee"]),
        rate_mode=int(settings["rate_mode"]),
    )


class LeveragedLoopStrategy(Strategy):
    name = "Leveraged Loop Vault"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        controller: StrategyController,
        **kwargs: Any,
    ):
        super().__init__(config, **kwargs)
        self.controller = controller

    def _params(self, num_of_loop: int | None, **overrides: Any) -> LoopParams:
        return LoopParams(
            num_of_loop=(
                num_of_loop
                if num_of_loop is not None
                else int(self.config.get("num_of_loop", DEFAULT_NUM_OF_LOOP))
            ),
            swap_min_out=int(overrides.get("swap_min_out") or 0),
            price_limit=int(overrides.get("price_limit") or 0),
            slippage_bp=int(
                overrides.get("slippage_bp")
                if overrides.get("slippage_bp") is not None
                else self.config.get("slippage_bp", DEFAULT_SLIPPAGE_BP)
            ),
        )

    async def deposit(
        self, amount: int = 0, num_of_loop: int | None = None, **kwargs: Any
    ) -> StatusTuple:
        if amount <= 0:
            return (False, f"amount must be positive, got {amount}")
        return await self._deposit(int(amount), num_of_loop, **kwargs)

    @status_tuple
    async def _deposit(
        self, amount: int, num_of_loop: int | None, **kwargs: Any
    ) -> str:
        depositor = self._get_main_wallet_address()
        shares = await self.controller.deposit_with_loop(
            amount,
            depositor,
            self._params(num_of_loop, **kwargs),
            caller=depositor,
        )
        return f"Deposited {amount} for {shares} shares"

    async def withdraw(
        self, amount: int = 0, num_of_loop: int | None = None, **kwargs: Any
    ) -> StatusTuple:
        if amount <= 0:
            return (False, f"amount must be positive, got {amount}")
        return await self._withdraw(int(amount), num_of_loop, **kwargs)

    @status_tuple
    async def _withdraw(
        self, amount: int, num_of_loop: int | None, **kwargs: Any
    ) -> str:
        owner = self._get_main_wallet_address()
        shares = await self.controller.withdraw_from_loop(
            amount,
            owner,
            owner,
            self._params(num_of_loop, **kwargs),
            caller=owner,
        )
        return f"Withdrew {amount} for {shares} shares"

    async def update(self) -> StatusTuple:
        snapshot = await self.controller.account_snapshot()
        if snapshot.debt_value and snapshot.health_factor < MIN_HEALTHY_FACTOR:
            self.logger.warning(f"Health factor low: {snapshot.health_factor}")
            return (False, f"Health factor {snapshot.health_factor} below target")
        return (True, f"Health factor {snapshot.health_factor}")

    async def exit(
        self, num_of_loop: int | None = None, **kwargs: Any
    ) -> StatusTuple:
        owner = self._get_main_wallet_address()
        maximum = self.controller.max_withdraw(owner)
        if maximum == 0:
            return (True, "Nothing to withdraw")
        return await self.withdraw(amount=maximum, num_of_loop=num_of_loop, **kwargs)

    async def _status(self) -> StatusDict:
        supplied = await self.controller.supplied_in_quote()
        borrowed = await self.controller.borrowed_in_quote()
        snapshot = await self.controller.account_snapshot()
        return StatusDict(
            portfolio_value=supplied - borrowed,
            net_deposit=self.controller.vault.total_assets(),
            health_factor=snapshot.health_factor,
            strategy_status={
                "supplied_in_quote": supplied,
                "borrowed_in_quote": borrowed,
                "exchange_rate": self.controller.exchange_rate(),
                "has_allocators": self.controller.has_allocators(),
            },
        )


def build_simulated_strategy(
    config: dict[str, Any] | None = None,
    settings: dict[str, Any] | None = None,
) -> tuple[LeveragedLoopStrategy, SimulatedDeployment]:
    deployment = deploy_simulation(settings)
    config = {
        "main_wallet": {"address": SIM_DEPOSITOR},
        "strategy_wallet": {"address": SIM_VAULT},
        **(config or {}),
    }
    return LeveragedLoopStrategy(config, controller=deployment.controller), deployment
