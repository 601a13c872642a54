from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from eth_utils import to_checksum_address

from loop_vault.core.adapters.BaseAdapter import BaseAdapter
from loop_vault.core.constants.base import ADAPTER_UNISWAP
from loop_vault.core.constants.uniswap_v3_abi import SWAP_ROUTER02_ABI
from loop_vault.core.constants.uniswap_v3_contracts import UNISWAP_V3_SWAP_ROUTER
from loop_vault.core.engine.types import SwapRequest
from loop_vault.core.utils.tokens import get_token_balance
from loop_vault.core.utils.transaction import encode_call, send_transaction

SUPPORTED_CHAIN_IDS = set(UNISWAP_V3_SWAP_ROUTER.keys())
FEE_TIERS = (100, 500, 3000, 10000)


class UniswapV3SwapVenue(BaseAdapter):
    adapter_type = ADAPTER_UNISWAP

    def __init__(
        self,
        *,
        chain_id: int,
        wallet_address: str,
        signing_callback: Callable[[dict], Awaitable[bytes]] | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        super().__init__("uniswap_adapter", config)
        self.chain_id = int(chain_id)
        if self.chain_id not in SUPPORTED_CHAIN_IDS:
            raise ValueError(
                f"Unsupported chain_id {self.chain_id} for Uniswap V3. "
                f"Supported: {sorted(SUPPORTED_CHAIN_IDS)}"
            )
        self.address = to_checksum_address(UNISWAP_V3_SWAP_ROUTER[self.chain_id])
        self.wallet_address = to_checksum_address(wallet_address)
        self.signing_callback = signing_callback

    async def swap_exact_in_single(self, request: SwapRequest) -> int:
        """Swap through SwapRouter02 and return what the recipient received."""
        if request.fee not in FEE_TIERS:
            raise ValueError(
                f"Unknown fee tier {request.fee}; expected one of {list(FEE_TIERS)}"
            )
        token_out = to_checksum_address(request.token_out)
        recipient = to_checksum_address(request.recipient)
        params = (
            to_checksum_address(request.token_in),
            token_out,
            int(request.fee),
            recipient,
            int(request.amount_in),
            int(request.amount_out_min),
            int(request.price_limit),
        )

        before = await get_token_balance(token_out, self.chain_id, recipient)
        tx = await encode_call(
            target=self.address,
            abi=SWAP_ROUTER02_ABI,
            fn_name="exactInputSingle",
            args=[params],
            from_address=self.wallet_address,
            chain_id=self.chain_id,
        )
        txn_hash = await send_transaction(tx, self.signing_callback)
        after = await get_token_balance(token_out, self.chain_id, recipient)

        amount_out = max(0, after - before)
        self.logger.info(
            f"exactInputSingle {request.amount_in} -> {amount_out} ({txn_hash})"
        )
        return amount_out
