"""Exception types raised by the loop/unwind engine and the vault collaborators.

Precondition errors are raised before any side effect. Invariant errors are
raised mid-operation and cause the surrounding unit of work to roll back.
Collaborator errors (simulation reverts, on-chain reverts) are not wrapped.
"""

from __future__ import annotations


class LoopVaultError(Exception):
    pass


class PreconditionError(LoopVaultError):
    pass


class InvariantError(LoopVaultError):
    pass


class ZeroNumOfLoop(PreconditionError):
    def __init__(self) -> None:
        super().__init__("num_of_loop must be greater than zero")


class ExceededMaxWithdraw(PreconditionError):
    def __init__(self, owner: str, requested: int, maximum: int) -> None:
        self.owner = owner
        self.requested = requested
        self.maximum = maximum
        super().__init__(
            f"withdraw of {requested} exceeds max {maximum} for owner {owner}"
        )


class Unauthorized(PreconditionError):
    def __init__(self, caller: str, role: str) -> None:
        self.caller = caller
        self.role = role
        super().__init__(f"{caller} is missing role {role}")


class EnforcedPause(PreconditionError):
    def __init__(self) -> None:
        super().__init__("strategy is paused")


class ReentrantCall(PreconditionError):
    def __init__(self) -> None:
        super().__init__("reentrant call")


class InsufficientShares(PreconditionError):
    def __init__(self, owner: str, balance: int, needed: int) -> None:
        self.owner = owner
        self.balance = balance
        self.needed = needed
        super().__init__(f"{owner} holds {balance} shares, needs {needed}")


class InsufficientShareAllowance(PreconditionError):
    def __init__(self, spender: str, allowance: int, needed: int) -> None:
        self.spender = spender
        self.allowance = allowance
        self.needed = needed
        super().__init__(
            f"share allowance of {spender} is {allowance}, needs {needed}"
        )


class SlippageExceeded(InvariantError):
    def __init__(self, actual_out: int, min_out: int, tolerance_bp: int) -> None:
        self.actual_out = actual_out
        self.min_out = min_out
        self.tolerance_bp = tolerance_bp
        super().__init__(
            f"swap output {actual_out} outside tolerance {tolerance_bp}bp of {min_out}"
        )


class InsufficientLoops(InvariantError):
    def __init__(self, available: int, required: int) -> None:
        self.available = available
        self.required = required
        super().__init__(
            f"unwind freed {available} but {required} is owed; raise num_of_loop"
        )


class FixedPointError(LoopVaultError, ArithmeticError):
    pass


class ArithmeticUnderflow(FixedPointError):
    pass


class ArithmeticOverflow(FixedPointError):
    pass


class DivisionByZero(FixedPointError):
    pass
