from __future__ import annotations

from loguru import logger

from loop_vault.core.utils.web3 import web3_from_chain_id


class EvmSnapshotCheckpoint:
    """Checkpoint participant backed by ``evm_snapshot`` / ``evm_revert``.

    Only fork and dev nodes (anvil, hardhat, tenderly forks) implement these
    methods. On any other node ``snapshot`` fails before the operation starts.
    """

    def __init__(self, chain_id: int):
        self.chain_id = int(chain_id)
        self.logger = logger.bind(component=self.__class__.__name__)

    async def snapshot(self) -> str:
        async with web3_from_chain_id(self.chain_id) as web3:
            snapshot_id = await web3.manager.coro_request("evm_snapshot", [])
        self.logger.debug(f"evm_snapshot {snapshot_id} on chain {self.chain_id}")
        return snapshot_id

    async def restore(self, snapshot: str) -> None:
        async with web3_from_chain_id(self.chain_id) as web3:
            reverted = await web3.manager.coro_request("evm_revert", [snapshot])
        if not reverted:
            raise RuntimeError(
                f"evm_revert to {snapshot} failed on chain {self.chain_id}"
            )
        self.logger.info(f"Reverted chain {self.chain_id} to snapshot {snapshot}")
