from __future__ import annotations

from loguru import logger

from loop_vault.core.adapters.models import BORROW, SUPPLY, SWAP
from loop_vault.core.constants.base import DEFAULT_POOL_FEE, VARIABLE_RATE_MODE
from loop_vault.core.engine.interfaces import Erc20Token, LendingMarket, SwapVenue
from loop_vault.core.engine.position import PositionQuery
from loop_vault.core.engine.slippage import check_slippage
from loop_vault.core.engine.types import LoopParams, LoopReport, SwapRequest
from loop_vault.core.engine.unit_of_work import scoped_allowance
from loop_vault.core.errors import ZeroNumOfLoop
from loop_vault.core.utils.fixed_point import checked_mul


class LoopEngine:
    """Builds leverage with repeated supply -> borrow -> swap iterations.

    Each iteration borrows everything the market currently allows and swaps it
    back into collateral, so leverage approaches the LTV ceiling as
    ``num_of_loop`` grows. The last swap output is left idle in the vault.
    """

    def __init__(
        self,
        *,
        vault_address: str,
        market: LendingMarket,
        venue: SwapVenue,
        position: PositionQuery,
        collateral_token: Erc20Token,
        borrow_token: Erc20Token,
        pool_fee: int = DEFAULT_POOL_FEE,
        rate_mode: int = VARIABLE_RATE_MODE,
    ):
        self.vault_address = vault_address
        self.market = market
        self.venue = venue
        self.position = position
        self.collateral_token = collateral_token
        self.borrow_token = borrow_token
        self.pool_fee = pool_fee
        self.rate_mode = rate_mode
        self.logger = logger.bind(component=self.__class__.__name__)

    async def run(self, amount: int, params: LoopParams) -> LoopReport:
        if params.num_of_loop == 0:
            raise ZeroNumOfLoop()

        report = LoopReport()
        market_name = type(self.market).__name__
        venue_name = type(self.venue).__name__
        allowance = checked_mul(amount, params.num_of_loop)

        async with scoped_allowance(
            self.collateral_token, self.market.address, allowance
        ):
            for iteration in range(params.num_of_loop):
                await self.market.supply(
                    self.collateral_token.address, amount, self.vault_address
                )
                report.operations.append(
                    SUPPLY(
                        adapter=market_name,
                        iteration=iteration,
                        token_address=self.collateral_token.address,
                        amount=amount,
                    )
                )

                borrow_amount = await self.position.available_borrow_in_quote()
                await self.market.borrow(
                    self.borrow_token.address,
                    borrow_amount,
                    self.rate_mode,
                    self.vault_address,
                )
                report.operations.append(
                    BORROW(
                        adapter=market_name,
                        iteration=iteration,
                        token_address=self.borrow_token.address,
                        amount=borrow_amount,
                        rate_mode=self.rate_mode,
                    )
                )

                request = SwapRequest(
                    token_in=self.borrow_token.address,
                    token_out=self.collateral_token.address,
                    fee=self.pool_fee,
                    recipient=self.vault_address,
                    amount_in=borrow_amount,
                    amount_out_min=params.swap_min_out,
                    price_limit=params.price_limit,
                )
                async with scoped_allowance(
                    self.borrow_token, self.venue.address, borrow_amount
                ):
                    amount_out = await self.venue.swap_exact_in_single(request)
                check_slippage(amount_out, params.swap_min_out, params.slippage_bp)
                report.operations.append(
                    SWAP(
                        adapter=venue_name,
                        iteration=iteration,
                        from_token_address=request.token_in,
                        to_token_address=request.token_out,
                        from_amount=borrow_amount,
                        to_amount=amount_out,
                        min_amount_out=params.swap_min_out,
                    )
                )

                self.logger.info(
                    f"Loop {iteration + 1}/{params.num_of_loop}: supplied {amount}, "
                    f"borrowed {borrow_amount}, swapped into {amount_out}"
                )
                amount = amount_out
                report.iterations += 1

        report.idle_collateral = amount
        return report
