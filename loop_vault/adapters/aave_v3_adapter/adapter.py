from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from eth_utils import to_checksum_address

from loop_vault.core.adapters.BaseAdapter import BaseAdapter
from loop_vault.core.constants.aave_v3_abi import (
    AAVE_ORACLE_ABI,
    POOL_ABI,
    RESERVE_VARIABLE_DEBT_TOKEN_INDEX,
)
from loop_vault.core.constants.aave_v3_contracts import AAVE_V3_BY_CHAIN
from loop_vault.core.constants.base import ADAPTER_AAVE_V3, REFERRAL_CODE
from loop_vault.core.engine.types import AccountSnapshot
from loop_vault.core.utils import web3 as web3_utils
from loop_vault.core.utils.tokens import get_token_balance
from loop_vault.core.utils.transaction import encode_call, send_transaction


def _entry(chain_id: int) -> dict[str, str]:
    entry = AAVE_V3_BY_CHAIN.get(int(chain_id))
    if not entry:
        raise ValueError(f"Unsupported Aave v3 chain_id={chain_id}")
    return entry


class AaveV3LendingMarket(BaseAdapter):
    """Aave v3 Pool calls made by ``wallet_address``.

    Writes raise ``TransactionRevertedError`` on revert. ``withdraw`` and
    ``repay`` report realized amounts from balance deltas, since the return
    value of a state-changing call is not visible in the receipt.
    """

    adapter_type = ADAPTER_AAVE_V3

    def __init__(
        self,
        *,
        chain_id: int,
        wallet_address: str,
        signing_callback: Callable[[dict], Awaitable[bytes]] | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        super().__init__("aave_v3_adapter", config)
        self.chain_id = int(chain_id)
        self.address = to_checksum_address(_entry(self.chain_id)["pool"])
        self.wallet_address = to_checksum_address(wallet_address)
        self.signing_callback = signing_callback

        # Cache: underlying -> variableDebtTokenAddress
        self._variable_debt_token_by_underlying: dict[str, str] = {}

    async def _send(self, fn_name: str, args: list[Any]) -> str:
        tx = await encode_call(
            target=self.address,
            abi=POOL_ABI,
            fn_name=fn_name,
            args=args,
            from_address=self.wallet_address,
            chain_id=self.chain_id,
        )
        txn_hash = await send_transaction(tx, self.signing_callback)
        self.logger.info(f"{fn_name} sent: {txn_hash}")
        return txn_hash

    async def supply(self, asset: str, amount: int, on_behalf_of: str) -> None:
        await self._send(
            "supply",
            [
                to_checksum_address(asset),
                int(amount),
                to_checksum_address(on_behalf_of),
                REFERRAL_CODE,
            ],
        )

    async def borrow(
        self, asset: str, amount: int, rate_mode: int, on_behalf_of: str
    ) -> None:
        await self._send(
            "borrow",
            [
                to_checksum_address(asset),
                int(amount),
                int(rate_mode),
                REFERRAL_CODE,
                to_checksum_address(on_behalf_of),
            ],
        )

    async def withdraw(self, asset: str, amount: int, to: str) -> int:
        asset = to_checksum_address(asset)
        to = to_checksum_address(to)
        before = await get_token_balance(asset, self.chain_id, to)
        await self._send("withdraw", [asset, int(amount), to])
        after = await get_token_balance(asset, self.chain_id, to)
        return max(0, after - before)

    async def repay(
        self, asset: str, amount: int, rate_mode: int, on_behalf_of: str
    ) -> int:
        asset = to_checksum_address(asset)
        on_behalf_of = to_checksum_address(on_behalf_of)
        before = await self.user_reserve_debt(asset, on_behalf_of)
        await self._send("repay", [asset, int(amount), int(rate_mode), on_behalf_of])
        after = await self.user_reserve_debt(asset, on_behalf_of)
        return max(0, before - after)

    async def account_snapshot(self, who: str) -> AccountSnapshot:
        async with web3_utils.web3_from_chain_id(self.chain_id) as web3:
            pool = web3.eth.contract(address=self.address, abi=POOL_ABI)
            data = await pool.functions.getUserAccountData(
                to_checksum_address(who)
            ).call(block_identifier="pending")
        (
            collateral_value,
            debt_value,
            available_borrow_value,
            liquidation_threshold_bp,
            ltv_bp,
            health_factor,
        ) = (int(v) for v in data)
        return AccountSnapshot(
            collateral_value=collateral_value,
            debt_value=debt_value,
            available_borrow_value=available_borrow_value,
            liquidation_threshold_bp=liquidation_threshold_bp,
            ltv_bp=ltv_bp,
            health_factor=health_factor,
        )

    async def _variable_debt_token(self, asset: str) -> str:
        asset = to_checksum_address(asset)
        cached = self._variable_debt_token_by_underlying.get(asset)
        if cached:
            return cached

        async with web3_utils.web3_from_chain_id(self.chain_id) as web3:
            pool = web3.eth.contract(address=self.address, abi=POOL_ABI)
            reserve = await pool.functions.getReserveData(asset).call(
                block_identifier="pending"
            )
        debt_token = to_checksum_address(reserve[RESERVE_VARIABLE_DEBT_TOKEN_INDEX])
        self._variable_debt_token_by_underlying[asset] = debt_token
        return debt_token

    async def user_reserve_debt(self, asset: str, who: str) -> int:
        debt_token = await self._variable_debt_token(asset)
        return await get_token_balance(debt_token, self.chain_id, who)


class AaveV3PriceOracle(BaseAdapter):
    adapter_type = ADAPTER_AAVE_V3

    def __init__(self, *, chain_id: int, config: dict[str, Any] | None = None):
        super().__init__("aave_v3_oracle", config)
        self.chain_id = int(chain_id)
        self.address = to_checksum_address(_entry(self.chain_id)["oracle"])

    async def price(self, asset: str) -> int:
        async with web3_utils.web3_from_chain_id(self.chain_id) as web3:
            oracle = web3.eth.contract(address=self.address, abi=AAVE_ORACLE_ABI)
            price = await oracle.functions.getAssetPrice(
                to_checksum_address(asset)
            ).call(block_identifier="pending")
        return int(price)
