from __future__ import annotations

from typing import Any

from eth_utils import to_checksum_address

from loop_vault.adapters.simulated_market_adapter.state import (
    SimulatedChain,
    SimulationError,
)
from loop_vault.core.adapters.BaseAdapter import BaseAdapter
from loop_vault.core.constants.base import (
    ADAPTER_SIMULATED,
    BASIS_POINTS,
    FEE_TIER_SCALE,
    MAX_UINT256,
    PRECISION,
    VARIABLE_RATE_MODE,
)
from loop_vault.core.engine.types import AccountSnapshot, SwapRequest

TOKEN_UNIT = 10**18


def _value(amount: int, price: int) -> int:
    return amount * price // TOKEN_UNIT


class SimulatedToken(BaseAdapter):
    """ERC-20 semantics over :class:`SimulatedChain`, acting as ``wallet_address``."""

    adapter_type = ADAPTER_SIMULATED

    def __init__(
        self,
        chain: SimulatedChain,
        address: str,
        wallet_address: str,
        config: dict[str, Any] | None = None,
    ):
        super().__init__("simulated_token", config)
        self.chain = chain
        self.address = to_checksum_address(address)
        self.wallet_address = to_checksum_address(wallet_address)

    async def balance_of(self, who: str) -> int:
        return self.chain.balance(self.address, who)

    async def allowance(self, owner: str, spender: str) -> int:
        return self.chain.allowance(self.address, owner, spender)

    async def approve(self, spender: str, amount: int) -> None:
        self.chain.set_allowance(self.address, self.wallet_address, spender, amount)

    async def transfer(self, to: str, amount: int) -> None:
        self.chain.move(self.address, self.wallet_address, to, amount)

    async def transfer_from(self, owner: str, to: str, amount: int) -> None:
        self.chain.spend_allowance(self.address, owner, self.wallet_address, amount)
        self.chain.move(self.address, owner, to, amount)


class SimulatedLendingMarket(BaseAdapter):
    """Aave v3 style pool: base-currency accounting, LTV borrow cap, HF floor on withdraw."""

    adapter_type = ADAPTER_SIMULATED

    def __init__(
        self,
        chain: SimulatedChain,
        address: str,
        wallet_address: str,
        config: dict[str, Any] | None = None,
    ):
        super().__init__("simulated_lending_market", config)
        self.chain = chain
        self.address = to_checksum_address(address)
        self.wallet_address = to_checksum_address(wallet_address)

    def _snapshot(self, who: str) -> AccountSnapshot:
        collateral_value = 0
        weighted_ltv = 0
        weighted_threshold = 0
        for token, amount in self.chain.supplied.get(to_checksum_address(who), {}).items():
            if amount == 0:
                continue
            value = _value(amount, self.chain.price(token))
            reserve = self.chain.reserve(token)
            collateral_value += value
            weighted_ltv += value * reserve.ltv_bp
            weighted_threshold += value * reserve.liquidation_threshold_bp

        debt_value = sum(
            _value(amount, self.chain.price(token))
            for token, amount in self.chain.debt.get(to_checksum_address(who), {}).items()
        )

        borrow_capacity = weighted_ltv // BASIS_POINTS
        threshold_value = weighted_threshold // BASIS_POINTS
        if debt_value == 0:
            health_factor = MAX_UINT256
        else:
            health_factor = threshold_value * PRECISION // debt_value

        return AccountSnapshot(
            collateral_value=collateral_value,
            debt_value=debt_value,
            available_borrow_value=max(borrow_capacity - debt_value, 0),
            liquidation_threshold_bp=(
                weighted_threshold // collateral_value if collateral_value else 0
            ),
            ltv_bp=weighted_ltv // collateral_value if collateral_value else 0,
            health_factor=health_factor,
        )

    async def account_snapshot(self, who: str) -> AccountSnapshot:
        return self._snapshot(who)

    async def user_reserve_debt(self, asset: str, who: str) -> int:
        return self.chain.debt_of(who, asset)

    async def supply(self, asset: str, amount: int, on_behalf_of: str) -> None:
        if amount == 0:
            raise SimulationError("supply: invalid amount")
        self.chain.reserve(asset)
        self.chain.spend_allowance(asset, self.wallet_address, self.address, amount)
        self.chain.move(asset, self.wallet_address, self.address, amount)
        self.chain.set_supplied(
            on_behalf_of, asset, self.chain.supplied_of(on_behalf_of, asset) + amount
        )
        self.logger.debug(f"supply {amount} of {asset} for {on_behalf_of}")

    async def borrow(
        self, asset: str, amount: int, rate_mode: int, on_behalf_of: str
    ) -> None:
        if amount == 0:
            raise SimulationError("borrow: invalid amount")
        if rate_mode != VARIABLE_RATE_MODE:
            raise SimulationError(f"borrow: unsupported rate mode {rate_mode}")
        if to_checksum_address(on_behalf_of) != self.wallet_address:
            raise SimulationError("borrow: credit delegation is not supported")
        self.chain.reserve(asset)

        snapshot = self._snapshot(on_behalf_of)
        requested_value = _value(amount, self.chain.price(asset))
        if requested_value > snapshot.available_borrow_value:
            raise SimulationError(
                f"borrow: {requested_value} exceeds available "
                f"{snapshot.available_borrow_value}"
            )
        self.chain.move(asset, self.address, self.wallet_address, amount)
        self.chain.set_debt(
            on_behalf_of, asset, self.chain.debt_of(on_behalf_of, asset) + amount
        )
        self.logger.debug(f"borrow {amount} of {asset} for {on_behalf_of}")

    async def withdraw(self, asset: str, amount: int, to: str) -> int:
        balance = self.chain.supplied_of(self.wallet_address, asset)
        if amount == MAX_UINT256:
            amount = balance
        if amount == 0:
            raise SimulationError("withdraw: invalid amount")
        if amount > balance:
            raise SimulationError(
                f"withdraw: {amount} exceeds supplied balance {balance}"
            )

        self.chain.set_supplied(self.wallet_address, asset, balance - amount)
        if self._snapshot(self.wallet_address).health_factor < PRECISION:
            self.chain.set_supplied(self.wallet_address, asset, balance)
            raise SimulationError(
                "withdraw: health factor lower than liquidation threshold"
            )
        self.chain.move(asset, self.address, to, amount)
        self.logger.debug(f"withdraw {amount} of {asset} to {to}")
        return amount

    async def repay(
        self, asset: str, amount: int, rate_mode: int, on_behalf_of: str
    ) -> int:
        if amount == 0:
            raise SimulationError("repay: invalid amount")
        if rate_mode != VARIABLE_RATE_MODE:
            raise SimulationError(f"repay: unsupported rate mode {rate_mode}")
        debt = self.chain.debt_of(on_behalf_of, asset)
        if debt == 0:
            raise SimulationError("repay: no debt of selected type")

        paid = min(amount, debt)
        self.chain.spend_allowance(asset, self.wallet_address, self.address, paid)
        self.chain.move(asset, self.wallet_address, self.address, paid)
        self.chain.set_debt(on_behalf_of, asset, debt - paid)
        self.logger.debug(f"repay {paid} of {asset} for {on_behalf_of}")
        return paid


class SimulatedSwapVenue(BaseAdapter):
    """Single-hop swaps at the oracle rate less the pool fee tier."""

    adapter_type = ADAPTER_SIMULATED

    def __init__(
        self,
        chain: SimulatedChain,
        address: str,
        wallet_address: str,
        config: dict[str, Any] | None = None,
    ):
        super().__init__("simulated_swap_venue", config)
        self.chain = chain
        self.address = to_checksum_address(address)
        self.wallet_address = to_checksum_address(wallet_address)

    def quote(self, token_in: str, token_out: str, fee: int, amount_in: int) -> int:
        price_in = self.chain.price(token_in)
        price_out = self.chain.price(token_out)
        return (
            amount_in
            * price_in
            * (FEE_TIER_SCALE - fee)
            // (price_out * FEE_TIER_SCALE)
        )

    async def swap_exact_in_single(self, request: SwapRequest) -> int:
        if request.amount_in == 0:
            raise SimulationError("swap: amount in is zero")
        if not 0 <= request.fee < FEE_TIER_SCALE:
            raise SimulationError(f"swap: invalid fee tier {request.fee}")

        # No price impact, so a price limit can never be crossed.
        amount_out = self.quote(
            request.token_in, request.token_out, request.fee, request.amount_in
        )
        if amount_out < request.amount_out_min:
            raise SimulationError(
                f"swap: too little received ({amount_out} < {request.amount_out_min})"
            )

        self.chain.spend_allowance(
            request.token_in, self.wallet_address, self.address, request.amount_in
        )
        self.chain.move(
            request.token_in, self.wallet_address, self.address, request.amount_in
        )
        self.chain.move(request.token_out, self.address, request.recipient, amount_out)
        self.logger.debug(
            f"swap {request.amount_in} {request.token_in} -> {amount_out} {request.token_out}"
        )
        return amount_out


class SimulatedPriceOracle(BaseAdapter):
    adapter_type = ADAPTER_SIMULATED

    def __init__(self, chain: SimulatedChain, config: dict[str, Any] | None = None):
        super().__init__("simulated_price_oracle", config)
        self.chain = chain

    async def price(self, asset: str) -> int:
        return self.chain.price(asset)
