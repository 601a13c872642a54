from collections.abc import Awaitable, Callable
from typing import Any

from eth_utils import to_checksum_address

from loop_vault.core.adapters.BaseAdapter import BaseAdapter
from loop_vault.core.constants.base import ADAPTER_TOKEN
from loop_vault.core.utils.tokens import (
    build_approve_transaction,
    build_send_transaction,
    build_transfer_from_transaction,
    get_token_allowance,
    get_token_balance,
)
from loop_vault.core.utils.transaction import send_transaction


class Erc20TokenAdapter(BaseAdapter):
    """One ERC-20 token on one chain, acting as ``wallet_address``."""

    adapter_type: str = ADAPTER_TOKEN

    def __init__(
        self,
        token_address: str,
        *,
        chain_id: int,
        wallet_address: str,
        signing_callback: Callable[[dict], Awaitable[bytes]] | None = None,
        config: dict[str, Any] | None = None,
    ):
        super().__init__("token_adapter", config)
        self.address = to_checksum_address(token_address)
        self.chain_id = int(chain_id)
        self.wallet_address = to_checksum_address(wallet_address)
        self.signing_callback = signing_callback

    async def balance_of(self, who: str) -> int:
        return await get_token_balance(self.address, self.chain_id, who)

    async def allowance(self, owner: str, spender: str) -> int:
        return await get_token_allowance(self.address, self.chain_id, owner, spender)

    async def approve(self, spender: str, amount: int) -> None:
        tx = await build_approve_transaction(
            from_address=self.wallet_address,
            chain_id=self.chain_id,
            token_address=self.address,
            spender_address=spender,
            amount=int(amount),
        )
        txn_hash = await send_transaction(tx, self.signing_callback)
        self.logger.info(f"approve {spender} for {amount}: {txn_hash}")

    async def transfer(self, to: str, amount: int) -> None:
        tx = await build_send_transaction(
            from_address=self.wallet_address,
            to_address=to,
            token_address=self.address,
            chain_id=self.chain_id,
            amount=int(amount),
        )
        txn_hash = await send_transaction(tx, self.signing_callback)
        self.logger.info(f"transfer {amount} to {to}: {txn_hash}")

    async def transfer_from(self, owner: str, to: str, amount: int) -> None:
        tx = await build_transfer_from_transaction(
            from_address=self.wallet_address,
            owner_address=owner,
            to_address=to,
            token_address=self.address,
            chain_id=self.chain_id,
            amount=int(amount),
        )
        txn_hash = await send_transaction(tx, self.signing_callback)
        self.logger.info(f"transferFrom {owner} -> {to} of {amount}: {txn_hash}")
