from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, TypedDict

from loguru import logger


class StatusDict(TypedDict):
    # Position figures are in quote (borrow asset) units at 1e18 precision.
    portfolio_value: int
    net_deposit: int
    health_factor: int
    strategy_status: Any


StatusTuple = tuple[bool, str]


class WalletConfig(TypedDict, total=False):
    address: str
    private_key_hex: str | None


class StrategyConfig(TypedDict, total=False):
    main_wallet: WalletConfig | None
    strategy_wallet: WalletConfig | None


class Strategy(ABC):
    name: str | None = None

    def __init__(
        self,
        config: StrategyConfig | dict[str, Any] | None = None,
        **kwargs: Any,
    ):
        self.logger = logger.bind(strategy=self.__class__.__name__)
        self.config: StrategyConfig | dict[str, Any] = config or {}

    async def setup(self) -> None:
        pass

    def _get_strategy_wallet_address(self) -> str:
        strategy_wallet = self.config.get("strategy_wallet")
        if not strategy_wallet or not isinstance(strategy_wallet, dict):
            raise ValueError("strategy_wallet not configured in strategy config")
        address = strategy_wallet.get("address")
        if not address:
            raise ValueError("strategy_wallet address not found in config")
        return str(address)

    def _get_main_wallet_address(self) -> str:
        main_wallet = self.config.get("main_wallet")
        if not main_wallet or not isinstance(main_wallet, dict):
            raise ValueError("main_wallet not configured in strategy config")
        address = main_wallet.get("address")
        if not address:
            raise ValueError("main_wallet address not found in config")
        return str(address)

    @abstractmethod
    async def deposit(self, **kwargs) -> StatusTuple:
        pass

    async def withdraw(self, **kwargs) -> StatusTuple:
        return (True, "Withdrawal complete")

    @abstractmethod
    async def update(self) -> StatusTuple:
        pass

    @abstractmethod
    async def exit(self, **kwargs) -> StatusTuple:
        pass

    @abstractmethod
    async def _status(self) -> StatusDict:
        pass

    async def status(self) -> StatusDict:
        status = await self._status()
        self.logger.info(f"Status: {status}")
        return status
