"""Entry points that wrap the loop/unwind engines around share accounting."""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from loop_vault.core.constants.base import ALLOCATOR_ROLE, MANAGER_ROLE, PRECISION
from loop_vault.core.engine.interfaces import (
    AccessControl,
    Checkpointable,
    Erc20Token,
    VaultAccounting,
)
from loop_vault.core.engine.loop import LoopEngine
from loop_vault.core.engine.position import PositionQuery
from loop_vault.core.engine.types import (
    AccountSnapshot,
    LoopParams,
    LoopReport,
    StrategyFlags,
    UnwindReport,
)
from loop_vault.core.engine.unit_of_work import ReentrancyGuard, unit_of_work
from loop_vault.core.engine.unwind import UnwindEngine
from loop_vault.core.errors import (
    EnforcedPause,
    ExceededMaxWithdraw,
    Unauthorized,
    ZeroNumOfLoop,
)
from loop_vault.core.utils.fixed_point import checked_sub, mul_div


class StrategyController:
    def __init__(
        self,
        *,
        vault_address: str,
        vault: VaultAccounting,
        access: AccessControl,
        position: PositionQuery,
        loop_engine: LoopEngine,
        unwind_engine: UnwindEngine,
        collateral_token: Erc20Token,
        participants: Sequence[Checkpointable] = (),
        flags: StrategyFlags | None = None,
    ):
        self.vault_address = vault_address
        self.vault = vault
        self.access = access
        self.position = position
        self.loop_engine = loop_engine
        self.unwind_engine = unwind_engine
        self.collateral_token = collateral_token
        self.participants = list(participants)
        self.flags = flags or StrategyFlags()
        self.guard = ReentrancyGuard()
        self.logger = logger.bind(component=self.__class__.__name__)
        self.last_loop_report: LoopReport | None = None
        self.last_unwind_report: UnwindReport | None = None

    async def _check_gates(self, caller: str, params: LoopParams) -> None:
        if self.flags.has_allocators and not await self.access.has_capability(
            caller, ALLOCATOR_ROLE
        ):
            raise Unauthorized(caller, ALLOCATOR_ROLE)
        if await self.access.is_paused():
            raise EnforcedPause()
        if params.num_of_loop == 0:
            raise ZeroNumOfLoop()

    async def deposit_with_loop(
        self, assets: int, receiver: str, params: LoopParams, *, caller: str
    ) -> int:
        """Pull ``assets`` from ``caller``, mint shares to ``receiver`` and lever up."""
        async with self.guard.hold():
            await self._check_gates(caller, params)
            async with unit_of_work(self.participants, label="deposit_with_loop"):
                shares = self.vault.preview_deposit(assets)
                await self.vault.mint_for_deposit(caller, receiver, assets, shares)
                self.last_loop_report = await self.loop_engine.run(assets, params)
            self.logger.info(
                f"Deposited {assets} for {receiver}: {shares} shares, "
                f"{params.num_of_loop} loop(s)"
            )
            return shares

    async def withdraw_from_loop(
        self,
        assets: int,
        receiver: str,
        owner: str,
        params: LoopParams,
        *,
        caller: str,
    ) -> int:
        """Burn ``owner``'s shares and pay ``assets`` to ``receiver``, unwinding as needed."""
        async with self.guard.hold():
            await self._check_gates(caller, params)
            maximum = self.vault.max_withdraw(owner)
            if assets > maximum:
                raise ExceededMaxWithdraw(owner, assets, maximum)

            async with unit_of_work(self.participants, label="withdraw_from_loop"):
                shares = self.vault.preview_withdraw(assets)
                await self.vault.burn_for_withdraw(caller, owner, assets, shares)

                self.last_unwind_report = None
                idle = await self.collateral_token.balance_of(self.vault_address)
                if idle < assets:
                    self.last_unwind_report = await self.unwind_engine.run(
                        checked_sub(assets, idle), params, required_balance=assets
                    )
                await self.vault.transfer_assets(receiver, assets)
            self.logger.info(
                f"Withdrew {assets} to {receiver} burning {shares} shares of {owner}"
            )
            return shares

    async def set_has_allocators(self, value: bool, *, caller: str) -> None:
        if not await self.access.has_capability(caller, MANAGER_ROLE):
            raise Unauthorized(caller, MANAGER_ROLE)
        self.flags.has_allocators = value
        self.logger.info(f"has_allocators set to {value} by {caller}")

    def has_allocators(self) -> bool:
        return self.flags.has_allocators

    def exchange_rate(self) -> int:
        supply = self.vault.total_supply()
        if supply == 0:
            return PRECISION
        return mul_div(self.vault.total_assets(), PRECISION, supply)

    def preview_deposit(self, assets: int) -> int:
        return self.vault.preview_deposit(assets)

    def max_withdraw(self, owner: str) -> int:
        return self.vault.max_withdraw(owner)

    async def account_snapshot(self) -> AccountSnapshot:
        return await self.position.account_snapshot()

    async def supplied_in_quote(self) -> int:
        return await self.position.supplied_in_quote()

    async def borrowed_in_quote(self) -> int:
        return await self.position.borrowed_in_quote()

    async def available_borrow_in_quote(self) -> int:
        return await self.position.available_borrow_in_quote()
