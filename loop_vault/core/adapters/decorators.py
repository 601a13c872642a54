from __future__ import annotations

from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any

from loop_vault.core.errors import LoopVaultError


def status_tuple(
    fn: Callable[..., Coroutine[Any, Any, str]],
) -> Callable[..., Coroutine[Any, Any, tuple[bool, str]]]:
    """Wrap an async lifecycle method to return ``(True, message)`` or ``(False, error_str)``.

    Only ``LoopVaultError`` is converted; the operation it came from has already
    been rolled back. Collaborator failures (reverts, RPC errors) propagate.
    """

    @wraps(fn)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> tuple[bool, str]:
        try:
            result = await fn(self, *args, **kwargs)
            return (True, result)
        except LoopVaultError as exc:
            self.logger.error(f"Error in {fn.__name__}: {exc}")
            return (False, str(exc))

    return wrapper
