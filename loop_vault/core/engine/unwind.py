from __future__ import annotations

from loguru import logger

from loop_vault.core.adapters.models import REPAY, SWAP, WITHDRAW
from loop_vault.core.constants.base import (
    DEFAULT_POOL_FEE,
    FEE_TIER_SCALE,
    MAX_UINT256,
    VARIABLE_RATE_MODE,
)
from loop_vault.core.engine.interfaces import (
    Erc20Token,
    LendingMarket,
    PriceOracle,
    SwapVenue,
)
from loop_vault.core.engine.position import PositionQuery
from loop_vault.core.engine.slippage import check_slippage
from loop_vault.core.engine.types import LoopParams, SwapRequest, UnwindReport
from loop_vault.core.engine.unit_of_work import scoped_allowance
from loop_vault.core.errors import InsufficientLoops, ZeroNumOfLoop
from loop_vault.core.utils.fixed_point import checked_sub, mul_div_up


class UnwindEngine:
    """Frees collateral by withdrawing, swapping to the borrow asset and repaying.

    Each pass withdraws what the health-factor floor allows, then repays as much
    debt as that withdrawal covers. A final direct withdrawal always follows the
    passes. The unwind fails if the vault still cannot cover ``required_balance``.
    """

    def __init__(
        self,
        *,
        vault_address: str,
        market: LendingMarket,
        venue: SwapVenue,
        oracle: PriceOracle,
        position: PositionQuery,
        collateral_token: Erc20Token,
        borrow_token: Erc20Token,
        pool_fee: int = DEFAULT_POOL_FEE,
        rate_mode: int = VARIABLE_RATE_MODE,
    ):
        self.vault_address = vault_address
        self.market = market
        self.venue = venue
        self.oracle = oracle
        self.position = position
        self.collateral_token = collateral_token
        self.borrow_token = borrow_token
        self.pool_fee = pool_fee
        self.rate_mode = rate_mode
        self.logger = logger.bind(component=self.__class__.__name__)

    async def run(
        self,
        assets_needed: int,
        params: LoopParams,
        required_balance: int | None = None,
    ) -> UnwindReport:
        if params.num_of_loop == 0:
            raise ZeroNumOfLoop()
        if required_balance is None:
            required_balance = assets_needed

        report = UnwindReport()
        if await self.position.borrowed_in_quote() == 0:
            report.fast_path = True
            await self._withdraw(assets_needed, report)
        else:
            for iteration in range(params.num_of_loop):
                # Compared against the full shortfall on every pass, not what is left of it.
                withdrawable = await self.position.withdrawable_collateral()
                if withdrawable >= assets_needed:
                    self.logger.info(
                        f"Unwind pass {iteration + 1}: withdrawable {withdrawable} "
                        f"covers {assets_needed}, stopping early"
                    )
                    break

                withdrawn = await self._withdraw(withdrawable, report, iteration)
                if 0 < withdrawn < assets_needed:
                    await self._repay_from_collateral(
                        withdrawn, params, report, iteration
                    )
                report.passes += 1

            await self._final_withdrawal(report)

        available = await self.collateral_token.balance_of(self.vault_address)
        if available < required_balance:
            raise InsufficientLoops(available, required_balance)
        return report

    async def _withdraw(
        self, amount: int, report: UnwindReport, iteration: int | None = None
    ) -> int:
        if amount == 0:
            return 0
        withdrawn = await self.market.withdraw(
            self.collateral_token.address, amount, self.vault_address
        )
        report.operations.append(
            WITHDRAW(
                adapter=type(self.market).__name__,
                iteration=iteration,
                token_address=self.collateral_token.address,
                amount=amount,
                withdrawn=withdrawn,
            )
        )
        report.freed_collateral += withdrawn
        return withdrawn

    async def _repay_from_collateral(
        self,
        withdrawn: int,
        params: LoopParams,
        report: UnwindReport,
        iteration: int,
    ) -> None:
        debt = await self.market.user_reserve_debt(
            self.borrow_token.address, self.vault_address
        )
        if debt == 0:
            return

        collateral_price = await self.oracle.price(self.collateral_token.address)
        borrow_price = await self.oracle.price(self.borrow_token.address)
        # Collateral that clears the debt net of the pool fee, capped at the withdrawal.
        debt_in_collateral = mul_div_up(debt, borrow_price, collateral_price)
        after_fee = checked_sub(FEE_TIER_SCALE, self.pool_fee)
        swap_in = min(
            mul_div_up(debt_in_collateral, FEE_TIER_SCALE, after_fee), withdrawn
        )

        request = SwapRequest(
            token_in=self.collateral_token.address,
            token_out=self.borrow_token.address,
            fee=self.pool_fee,
            recipient=self.vault_address,
            amount_in=swap_in,
            amount_out_min=params.swap_min_out,
            price_limit=params.price_limit,
        )
        async with scoped_allowance(self.collateral_token, self.venue.address, swap_in):
            amount_out = await self.venue.swap_exact_in_single(request)
        check_slippage(amount_out, params.swap_min_out, params.slippage_bp)
        report.operations.append(
            SWAP(
                adapter=type(self.venue).__name__,
                iteration=iteration,
                from_token_address=request.token_in,
                to_token_address=request.token_out,
                from_amount=swap_in,
                to_amount=amount_out,
                min_amount_out=params.swap_min_out,
            )
        )

        async with scoped_allowance(self.borrow_token, self.market.address, amount_out):
            repaid = await self.market.repay(
                self.borrow_token.address,
                amount_out,
                self.rate_mode,
                self.vault_address,
            )
        report.operations.append(
            REPAY(
                adapter=type(self.market).__name__,
                iteration=iteration,
                token_address=self.borrow_token.address,
                amount=amount_out,
                repaid=repaid,
            )
        )
        self.logger.info(
            f"Unwind pass {iteration + 1}: withdrew {withdrawn}, swapped {swap_in} "
            f"into {amount_out}, repaid {repaid} of {debt}"
        )

    async def _final_withdrawal(self, report: UnwindReport) -> None:
        snapshot = await self.position.account_snapshot()
        if snapshot.collateral_value == 0:
            return
        debt = await self.market.user_reserve_debt(
            self.borrow_token.address, self.vault_address
        )
        if debt == 0:
            amount = MAX_UINT256
        else:
            amount = await self.position.withdrawable_collateral()
        withdrawn = await self._withdraw(amount, report)
        self.logger.info(f"Final unwind withdrawal freed {withdrawn}")
