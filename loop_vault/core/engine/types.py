from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from loop_vault.core.adapters.models import Operation
from loop_vault.core.constants.base import MAX_UINT16


class LoopParams(BaseModel):
    """Per-call loop parameters. Swap bounds are pre-computed by the caller."""

    model_config = ConfigDict(frozen=True)

    num_of_loop: int = Field(ge=0)
    swap_min_out: int = Field(default=0, ge=0)
    price_limit: int = Field(default=0, ge=0)
    slippage_bp: int = Field(default=0, ge=0, le=MAX_UINT16)


@dataclass(frozen=True)
class AccountSnapshot:
    # Values are in the lending market's base currency.
    collateral_value: int
    debt_value: int
    available_borrow_value: int
    liquidation_threshold_bp: int
    ltv_bp: int
    health_factor: int


@dataclass(frozen=True)
class SwapRequest:
    token_in: str
    token_out: str
    fee: int
    recipient: str
    amount_in: int
    amount_out_min: int
    price_limit: int


@dataclass
class StrategyFlags:
    has_allocators: bool = True


@dataclass
class LoopReport:
    operations: list[Operation] = field(default_factory=list)
    iterations: int = 0
    idle_collateral: int = 0


@dataclass
class UnwindReport:
    operations: list[Operation] = field(default_factory=list)
    passes: int = 0
    fast_path: bool = False
    freed_collateral: int = 0
