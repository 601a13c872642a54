from __future__ import annotations

from eth_utils import to_checksum_address
from loguru import logger

from loop_vault.core.constants.base import ALLOCATOR_ROLE, MANAGER_ROLE


class RoleRegistry:
    """In-memory role membership and pause switch."""

    def __init__(self, roles: dict[str, list[str]] | None = None):
        self._members: dict[str, set[str]] = {ALLOCATOR_ROLE: set(), MANAGER_ROLE: set()}
        self._paused = False
        self.logger = logger.bind(component=self.__class__.__name__)
        for role, accounts in (roles or {}).items():
            for account in accounts:
                self.grant_role(role, account)

    def grant_role(self, role: str, account: str) -> None:
        self._members.setdefault(role, set()).add(to_checksum_address(account))
        self.logger.debug(f"Granted {role} to {account}")

    def revoke_role(self, role: str, account: str) -> None:
        self._members.get(role, set()).discard(to_checksum_address(account))

    def pause(self) -> None:
        self._paused = True
        self.logger.warning("Strategy paused")

    def unpause(self) -> None:
        self._paused = False
        self.logger.info("Strategy unpaused")

    async def has_capability(self, caller: str, role: str) -> bool:
        return to_checksum_address(caller) in self._members.get(role, set())

    async def is_paused(self) -> bool:
        return self._paused
