from typing import Literal

from pydantic import BaseModel


class OperationBase(BaseModel):
    # Filled in by the engine that issued the call; tests may build records without it.
    adapter: str = "unknown"
    iteration: int | None = None


class SUPPLY(OperationBase):
    type: Literal["SUPPLY"] = "SUPPLY"
    token_address: str
    amount: int


class BORROW(OperationBase):
    type: Literal["BORROW"] = "BORROW"
    token_address: str
    amount: int
    rate_mode: int


class SWAP(OperationBase):
    type: Literal["SWAP"] = "SWAP"
    from_token_address: str
    to_token_address: str
    from_amount: int
    to_amount: int
    min_amount_out: int


class REPAY(OperationBase):
    type: Literal["REPAY"] = "REPAY"
    token_address: str
    amount: int
    repaid: int


class WITHDRAW(OperationBase):
    type: Literal["WITHDRAW"] = "WITHDRAW"
    token_address: str
    amount: int
    withdrawn: int


Operation = SUPPLY | BORROW | SWAP | REPAY | WITHDRAW
