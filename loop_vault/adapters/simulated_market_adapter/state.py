"""In-process ledger shared by the simulated token, market, venue and oracle."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from eth_utils import to_checksum_address


class SimulationError(Exception):
    """A simulated contract call reverted."""


@dataclass
class ReserveConfig:
    ltv_bp: int
    liquidation_threshold_bp: int


@dataclass
class SimulatedChain:
    # token -> holder -> amount
    balances: dict[str, dict[str, int]] = field(default_factory=dict)
    # token -> (owner, spender) -> amount
    allowances: dict[str, dict[tuple[str, str], int]] = field(default_factory=dict)
    # account -> token -> amount
    supplied: dict[str, dict[str, int]] = field(default_factory=dict)
    debt: dict[str, dict[str, int]] = field(default_factory=dict)
    reserves: dict[str, ReserveConfig] = field(default_factory=dict)
    # token -> price in 8-decimal base currency per whole token
    prices: dict[str, int] = field(default_factory=dict)

    def balance(self, token: str, holder: str) -> int:
        return self.balances.get(_key(token), {}).get(_key(holder), 0)

    def set_balance(self, token: str, holder: str, amount: int) -> None:
        self.balances.setdefault(_key(token), {})[_key(holder)] = amount

    def mint(self, token: str, holder: str, amount: int) -> None:
        self.set_balance(token, holder, self.balance(token, holder) + amount)

    def move(self, token: str, sender: str, to: str, amount: int) -> None:
        available = self.balance(token, sender)
        if available < amount:
            raise SimulationError(
                f"ERC20: transfer amount {amount} exceeds balance {available}"
            )
        self.set_balance(token, sender, available - amount)
        self.set_balance(token, to, self.balance(token, to) + amount)

    def allowance(self, token: str, owner: str, spender: str) -> int:
        return self.allowances.get(_key(token), {}).get((_key(owner), _key(spender)), 0)

    def set_allowance(self, token: str, owner: str, spender: str, amount: int) -> None:
        self.allowances.setdefault(_key(token), {})[(_key(owner), _key(spender))] = (
            amount
        )

    def spend_allowance(self, token: str, owner: str, spender: str, amount: int) -> None:
        current = self.allowance(token, owner, spender)
        if current < amount:
            raise SimulationError(
                f"ERC20: insufficient allowance {current} for {amount}"
            )
        self.set_allowance(token, owner, spender, current - amount)

    def supplied_of(self, account: str, token: str) -> int:
        return self.supplied.get(_key(account), {}).get(_key(token), 0)

    def debt_of(self, account: str, token: str) -> int:
        return self.debt.get(_key(account), {}).get(_key(token), 0)

    def set_supplied(self, account: str, token: str, amount: int) -> None:
        self.supplied.setdefault(_key(account), {})[_key(token)] = amount

    def set_debt(self, account: str, token: str, amount: int) -> None:
        self.debt.setdefault(_key(account), {})[_key(token)] = amount

    def set_price(self, token: str, price: int) -> None:
        self.prices[_key(token)] = price

    def price(self, token: str) -> int:
        try:
            return self.prices[_key(token)]
        except KeyError as exc:
            raise SimulationError(f"no price for asset {token}") from exc

    def configure_reserve(
        self, token: str, *, ltv_bp: int, liquidation_threshold_bp: int
    ) -> None:
        self.reserves[_key(token)] = ReserveConfig(ltv_bp, liquidation_threshold_bp)

    def reserve(self, token: str) -> ReserveConfig:
        try:
            return self.reserves[_key(token)]
        except KeyError as exc:
            raise SimulationError(f"reserve {token} not listed") from exc

    async def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(
            {
                "balances": self.balances,
                "allowances": self.allowances,
                "supplied": self.supplied,
                "debt": self.debt,
                "reserves": self.reserves,
                "prices": self.prices,
            }
        )

    async def restore(self, snapshot: dict[str, Any]) -> None:
        state = copy.deepcopy(snapshot)
        self.balances = state["balances"]
        self.allowances = state["allowances"]
        self.supplied = state["supplied"]
        self.debt = state["debt"]
        self.reserves = state["reserves"]
        self.prices = state["prices"]


def _key(address: str) -> str:
    return to_checksum_address(address)
