from __future__ import annotations

from loguru import logger

from loop_vault.core.constants.base import BASIS_POINTS, PRECISION
from loop_vault.core.engine.interfaces import LendingMarket, PriceOracle
from loop_vault.core.engine.types import AccountSnapshot
from loop_vault.core.utils.fixed_point import checked_sub, mul_div


class PositionQuery:
    """Read-only view of one account's position on the lending market.

    Figures are converted from the market's base currency into units of the
    quote (borrow) asset. Nothing is cached: every call reads the market again.
    """

    def __init__(
        self,
        market: LendingMarket,
        oracle: PriceOracle,
        account: str,
        collateral_asset: str,
        quote_asset: str,
    ):
        self.market = market
        self.oracle = oracle
        self.account = account
        self.collateral_asset = collateral_asset
        self.quote_asset = quote_asset
        self.logger = logger.bind(component=self.__class__.__name__)

    async def account_snapshot(self) -> AccountSnapshot:
        return await self.market.account_snapshot(self.account)

    async def _in_quote(self, value: int) -> int:
        price = await self.oracle.price(self.quote_asset)
        return mul_div(value, PRECISION, price)

    async def supplied_in_quote(self) -> int:
        snapshot = await self.account_snapshot()
        return await self._in_quote(snapshot.collateral_value)

    async def borrowed_in_quote(self) -> int:
        snapshot = await self.account_snapshot()
        return await self._in_quote(snapshot.debt_value)

    async def available_borrow_in_quote(self) -> int:
        snapshot = await self.account_snapshot()
        return await self._in_quote(snapshot.available_borrow_value)

    async def withdrawable_collateral(self) -> int:
        """Collateral that can leave the market while health factor stays >= 1.

        Raises ``ArithmeticUnderflow`` when debt already exceeds the
        threshold-adjusted collateral.
        """
        snapshot = await self.account_snapshot()
        headroom = checked_sub(
            mul_div(
                snapshot.collateral_value,
                snapshot.liquidation_threshold_bp,
                BASIS_POINTS,
            ),
            snapshot.debt_value,
        )
        price = await self.oracle.price(self.collateral_asset)
        withdrawable = mul_div(headroom, PRECISION, price)
        self.logger.debug(
            f"withdrawable collateral {withdrawable} (headroom {headroom}, price {price})"
        )
        return withdrawable
