"""Collaborator interfaces consumed by the loop/unwind engine.

Every collaborator is async and bound to the account it acts for, the way
on-chain adapters are bound to the strategy wallet. Failures are raised, never
returned as status tuples; the unit of work relies on that to roll back.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from loop_vault.core.engine.types import AccountSnapshot, SwapRequest


class LendingMarket(Protocol):
    address: str

    async def supply(self, asset: str, amount: int, on_behalf_of: str) -> None: ...

    async def borrow(
        self, asset: str, amount: int, rate_mode: int, on_behalf_of: str
    ) -> None: ...

    async def withdraw(self, asset: str, amount: int, to: str) -> int: ...

    async def repay(
        self, asset: str, amount: int, rate_mode: int, on_behalf_of: str
    ) -> int: ...

    async def account_snapshot(self, who: str) -> AccountSnapshot: ...

    async def user_reserve_debt(self, asset: str, who: str) -> int: ...


class SwapVenue(Protocol):
    address: str

    async def swap_exact_in_single(self, request: SwapRequest) -> int: ...


class PriceOracle(Protocol):
    async def price(self, asset: str) -> int: ...


class Erc20Token(Protocol):
    address: str

    async def balance_of(self, who: str) -> int: ...

    async def allowance(self, owner: str, spender: str) -> int: ...

    async def approve(self, spender: str, amount: int) -> None: ...

    async def transfer(self, to: str, amount: int) -> None: ...

    async def transfer_from(self, owner: str, to: str, amount: int) -> None: ...


class VaultAccounting(Protocol):
    def total_assets(self) -> int: ...

    def total_supply(self) -> int: ...

    def balance_of(self, owner: str) -> int: ...

    def preview_deposit(self, assets: int) -> int: ...

    def preview_withdraw(self, assets: int) -> int: ...

    def max_withdraw(self, owner: str) -> int: ...

    async def mint_for_deposit(
        self, caller: str, receiver: str, assets: int, shares: int
    ) -> None: ...

    async def burn_for_withdraw(
        self, caller: str, owner: str, assets: int, shares: int
    ) -> None: ...

    async def transfer_assets(self, receiver: str, assets: int) -> None: ...


class AccessControl(Protocol):
    async def has_capability(self, caller: str, role: str) -> bool: ...

    async def is_paused(self) -> bool: ...


@runtime_checkable
class Checkpointable(Protocol):
    async def snapshot(self) -> Any: ...

    async def restore(self, snapshot: Any) -> None: ...
