from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from loop_vault.adapters.uniswap_adapter.adapter import UniswapV3SwapVenue
from loop_vault.core.engine.types import SwapRequest
from loop_vault.core.utils.transaction import TransactionRevertedError

OWNER = "0xaAaAaAaaAaAaAaaAaAAAAAAAAaaaAaAaAaaAaaAa"
TOKEN_A = "0x1111111111111111111111111111111111111111"
TOKEN_B = "0x3333333333333333333333333333333333333333"
MODULE = "loop_vault.adapters.uniswap_adapter.adapter"


def _make_venue(chain_id: int = 8453) -> UniswapV3SwapVenue:
    return UniswapV3SwapVenue(
        chain_id=chain_id,
        wallet_address=OWNER,
        signing_callback=AsyncMock(return_value=b"signed"),
    )


def _request(**overrides) -> SwapRequest:
    fields = {
        "token_in": TOKEN_A,
        "token_out": TOKEN_B,
        "fee": 500,
        "recipient": OWNER,
        "amount_in": 10**18,
        "amount_out_min": 99 * 10**16,
        "price_limit": 0,
    }
    fields.update(overrides)
    return SwapRequest(**fields)


class TestUniswapV3SwapVenue:
    def test_router_address_per_chain(self):
        assert _make_venue(8453).address == "0x2626664c2603336E57B271c5C0b26F421741e481"
        assert _make_venue(1).address == "0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45"

    def test_unsupported_chain(self):
        with pytest.raises(ValueError, match="Unsupported chain_id"):
            _make_venue(999)

    @pytest.mark.asyncio
    async def test_swap_encodes_exact_input_single(self):
        venue = _make_venue()
        with (
            patch(
                f"{MODULE}.encode_call", AsyncMock(return_value={"data": "0x"})
            ) as mock_encode,
            patch(f"{MODULE}.send_transaction", AsyncMock(return_value="0xtx")),
            patch(
                f"{MODULE}.get_token_balance",
                AsyncMock(side_effect=[5, 5 + 995 * 10**15]),
            ),
        ):
            amount_out = await venue.swap_exact_in_single(_request(price_limit=7))

        assert amount_out == 995 * 10**15
        kwargs = mock_encode.await_args.kwargs
        assert kwargs["fn_name"] == "exactInputSingle"
        assert kwargs["target"] == venue.address
        assert kwargs["args"] == [
            (TOKEN_A, TOKEN_B, 500, OWNER, 10**18, 99 * 10**16, 7)
        ]

    @pytest.mark.asyncio
    async def test_unknown_fee_tier_rejected(self):
        venue = _make_venue()
        with pytest.raises(ValueError, match="Unknown fee tier"):
            await venue.swap_exact_in_single(_request(fee=42))

    @pytest.mark.asyncio
    async def test_revert_propagates(self):
        venue = _make_venue()
        with (
            patch(f"{MODULE}.encode_call", AsyncMock(return_value={})),
            patch(
                f"{MODULE}.send_transaction",
                AsyncMock(side_effect=TransactionRevertedError("0xbad")),
            ),
            patch(f"{MODULE}.get_token_balance", AsyncMock(return_value=0)),
        ):
            with pytest.raises(TransactionRevertedError):
                await venue.swap_exact_in_single(_request())
