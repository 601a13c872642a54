"""All-or-nothing execution for multi-call strategy operations.

Every participant is checkpointed when the unit of work opens. If anything
raises before it closes, every participant is restored (newest first) and the
original exception propagates unchanged. A participant that fails to restore is
logged and skipped so the others are still restored.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any

from loguru import logger

from loop_vault.core.engine.interfaces import Checkpointable, Erc20Token
from loop_vault.core.errors import ReentrantCall


@asynccontextmanager
async def unit_of_work(
    participants: Sequence[Checkpointable], label: str = "operation"
) -> AsyncIterator[None]:
    taken: list[tuple[Checkpointable, Any]] = []
    for participant in participants:
        taken.append((participant, await participant.snapshot()))

    try:
        yield
    except BaseException as exc:
        logger.warning(
            f"{label} aborted ({type(exc).__name__}: {exc}); "
            f"restoring {len(taken)} participant(s)"
        )
        for participant, token in reversed(taken):
            try:
                await participant.restore(token)
            except Exception as restore_exc:
                logger.error(
                    f"{label}: restoring {type(participant).__name__} failed "
                    f"({type(restore_exc).__name__}: {restore_exc})"
                )
        raise
    logger.debug(f"{label} committed")


class ReentrancyGuard:
    """Rejects re-entry from the running task and serializes all others."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._entered: ContextVar[bool] = ContextVar(
            f"reentrancy_guard_{id(self)}", default=False
        )

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        if self._entered.get():
            raise ReentrantCall()
        async with self._lock:
            marker = self._entered.set(True)
            try:
                yield
            finally:
                self._entered.reset(marker)


@asynccontextmanager
async def scoped_allowance(
    token: Erc20Token, spender: str, amount: int
) -> AsyncIterator[None]:
    """Approve ``spender`` for ``amount`` and reset the allowance to zero on exit."""
    await token.approve(spender, amount)
    try:
        yield
    finally:
        await token.approve(spender, 0)
