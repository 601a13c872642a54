"""ERC-4626 style share bookkeeping for the strategy vault."""

from __future__ import annotations

import copy
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from loop_vault.core.engine.interfaces import Erc20Token
from loop_vault.core.errors import InsufficientShareAllowance, InsufficientShares
from loop_vault.core.utils.fixed_point import checked_add, checked_sub, mul_div, mul_div_up


class ShareLedger:
    """Share balances and allowances plus the vault's ``total_assets`` figure.

    Conversions use a virtual offset of one share and one asset unit, so the
    first depositor receives shares 1:1. ``total_assets`` is bookkeeping: it is
    moved by deposits and withdrawals, not read back from the market.
    """

    def __init__(self, vault_address: str, asset_token: Erc20Token):
        self.vault_address = to_checksum_address(vault_address)
        self.asset_token = asset_token
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._total_supply = 0
        self._total_assets = 0
        self.logger = logger.bind(component=self.__class__.__name__)

    def total_assets(self) -> int:
        return self._total_assets

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, owner: str) -> int:
        return self._balances.get(to_checksum_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        key = (to_checksum_address(owner), to_checksum_address(spender))
        return self._allowances.get(key, 0)

    def convert_to_shares(self, assets: int) -> int:
        return mul_div(assets, self._total_supply + 1, self._total_assets + 1)

    def convert_to_assets(self, shares: int) -> int:
        return mul_div(shares, self._total_assets + 1, self._total_supply + 1)

    def preview_deposit(self, assets: int) -> int:
        return self.convert_to_shares(assets)

    def preview_withdraw(self, assets: int) -> int:
        return mul_div_up(assets, self._total_supply + 1, self._total_assets + 1)

    def max_withdraw(self, owner: str) -> int:
        return self.convert_to_assets(self.balance_of(owner))

    def approve(self, owner: str, spender: str, shares: int) -> None:
        key = (to_checksum_address(owner), to_checksum_address(spender))
        self._allowances[key] = shares

    def spend_allowance(self, owner: str, spender: str, shares: int) -> None:
        current = self.allowance(owner, spender)
        if current < shares:
            raise InsufficientShareAllowance(spender, current, shares)
        self.approve(owner, spender, current - shares)

    async def mint_for_deposit(
        self, caller: str, receiver: str, assets: int, shares: int
    ) -> None:
        await self.asset_token.transfer_from(caller, self.vault_address, assets)
        receiver = to_checksum_address(receiver)
        self._balances[receiver] = checked_add(self.balance_of(receiver), shares)
        self._total_supply = checked_add(self._total_supply, shares)
        self._total_assets = checked_add(self._total_assets, assets)
        self.logger.info(f"Minted {shares} shares to {receiver} for {assets} assets")

    async def burn_for_withdraw(
        self, caller: str, owner: str, assets: int, shares: int
    ) -> None:
        caller = to_checksum_address(caller)
        owner = to_checksum_address(owner)
        if caller != owner:
            self.spend_allowance(owner, caller, shares)
        balance = self.balance_of(owner)
        if balance < shares:
            raise InsufficientShares(owner, balance, shares)
        self._balances[owner] = balance - shares
        self._total_supply = checked_sub(self._total_supply, shares)
        self._total_assets = checked_sub(self._total_assets, assets)
        self.logger.info(f"Burned {shares} shares of {owner} for {assets} assets")

    async def transfer_assets(self, receiver: str, assets: int) -> None:
        await self.asset_token.transfer(receiver, assets)

    async def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(
            {
                "balances": self._balances,
                "allowances": self._allowances,
                "total_supply": self._total_supply,
                "total_assets": self._total_assets,
            }
        )

    async def restore(self, snapshot: dict[str, Any]) -> None:
        self._balances = copy.deepcopy(snapshot["balances"])
        self._allowances = copy.deepcopy(snapshot["allowances"])
        self._total_supply = snapshot["total_supply"]
        self._total_assets = snapshot["total_assets"]
