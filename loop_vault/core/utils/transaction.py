import asyncio
import math
from collections.abc import Callable
from typing import Any

from eth_account import Account
from loguru import logger
from web3 import AsyncWeb3

from loop_vault.core.constants.base import (
    DEFAULT_TRANSACTION_TIMEOUT,
    GAS_BUFFER_MULTIPLIER,
    MAX_BASE_FEE_GROWTH_MULTIPLIER,
    SUGGESTED_GAS_PRICE_MULTIPLIER,
    SUGGESTED_PRIORITY_FEE_MULTIPLIER,
)
from loop_vault.core.constants.chains import PRE_EIP_1559_CHAIN_IDS
from loop_vault.core.utils.web3 import (
    get_transaction_chain_id,
    web3_from_chain_id,
    web3s_from_chain_id,
)


class TransactionRevertedError(RuntimeError):
    def __init__(
        self,
        txn_hash: str,
        receipt: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.txn_hash = txn_hash
        self.receipt = receipt or {}
        super().__init__(message or f"Transaction reverted: {txn_hash}")


def _revert_error(
    txn_hash: str, receipt: dict[str, Any], transaction: dict[str, Any]
) -> TransactionRevertedError:
    gas_used = int(receipt.get("gasUsed") or 0)
    gas_limit = int(transaction.get("gas") or 0)
    suffix = ""
    if gas_used or gas_limit:
        suffix = f" gasUsed={gas_used} gasLimit={gas_limit}"
        if gas_used and gas_limit and gas_used >= gas_limit:
            suffix += " (likely out of gas)"
    return TransactionRevertedError(
        txn_hash,
        receipt,
        message=f"Transaction reverted (status=0): {txn_hash}{suffix}",
    )


def _get_transaction_from_address(transaction: dict) -> str:
    if "from" not in transaction:
        raise ValueError("Transaction does not contain from address")
    return AsyncWeb3.to_checksum_address(transaction["from"])


async def nonce_transaction(transaction: dict):
    transaction = transaction.copy()
    from_address = _get_transaction_from_address(transaction)

    async with web3s_from_chain_id(get_transaction_chain_id(transaction)) as web3s:
        nonces = await asyncio.gather(
            *[
                web3.eth.get_transaction_count(from_address, block_identifier="pending")
                for web3 in web3s
            ]
        )
        transaction["nonce"] = max(nonces)

    return transaction


async def gas_price_transaction(transaction: dict):
    transaction = transaction.copy()

    async def _get_base_fee(web3: AsyncWeb3) -> int:
        latest_block = await web3.eth.get_block("latest")
        return latest_block.baseFeePerGas

    async def _get_priority_fee(web3: AsyncWeb3) -> int:
        fee_history = await web3.eth.fee_history(10, "latest", [80])
        historical_priority_fees = [i[0] for i in fee_history.reward]
        return sum(historical_priority_fees) // len(historical_priority_fees)

    chain_id = get_transaction_chain_id(transaction)
    async with web3s_from_chain_id(chain_id) as web3s:
        if chain_id in PRE_EIP_1559_CHAIN_IDS:
            gas_prices = await asyncio.gather(*[web3.eth.gas_price for web3 in web3s])
            transaction["gasPrice"] = int(
                max(gas_prices) * SUGGESTED_GAS_PRICE_MULTIPLIER
            )
        else:
            base_fee = max(
                await asyncio.gather(*[_get_base_fee(web3) for web3 in web3s])
            )
            priority_fee = max(
                await asyncio.gather(*[_get_priority_fee(web3) for web3 in web3s])
            )
            transaction["maxFeePerGas"] = int(
                base_fee * MAX_BASE_FEE_GROWTH_MULTIPLIER
                + priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER
            )
            transaction["maxPriorityFeePerGas"] = int(
                priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER
            )

    return transaction


async def gas_limit_transaction(transaction: dict):
    transaction = transaction.copy()

    # prevents RPCs from taking this as a serious limit
    transaction.pop("gas", None)

    async def _estimate_gas(web3: AsyncWeb3, transaction: dict) -> int:
        try:
            return await web3.eth.estimate_gas(transaction, block_identifier="latest")
        except Exception as e:
            logger.info(
                f"Failed to estimate gas using {web3.provider.endpoint_uri}. Error: {e}"
            )
            return 0

    async with web3s_from_chain_id(get_transaction_chain_id(transaction)) as web3s:
        gas_limits = await asyncio.gather(
            *[_estimate_gas(web3, transaction) for web3 in web3s]
        )

        gas_limit = max(gas_limits)
        if gas_limit == 0:
            # Estimation fails when the call itself would revert.
            raise TransactionRevertedError(
                "", message=f"Gas estimation failed on all RPCs for {transaction}"
            )
        transaction["gas"] = int(math.ceil(gas_limit * GAS_BUFFER_MULTIPLIER))

    return transaction


async def broadcast_transaction(chain_id, signed_transaction: bytes) -> str:
    async with web3_from_chain_id(chain_id) as web3:
        tx_hash = await web3.eth.send_raw_transaction(signed_transaction)
        return tx_hash.hex()


async def wait_for_transaction_receipt(
    chain_id: int,
    txn_hash: str,
    poll_interval: float = 0.1,
    timeout: int = DEFAULT_TRANSACTION_TIMEOUT,
    confirmations: int = 1,
) -> dict:
    if isinstance(txn_hash, str) and not txn_hash.startswith("0x"):
        txn_hash = f"0x{txn_hash}"

    async with web3s_from_chain_id(chain_id) as web3s:
        tasks = [
            asyncio.create_task(
                web3.eth.wait_for_transaction_receipt(
                    txn_hash, poll_latency=poll_interval, timeout=timeout
                )
            )
            for web3 in web3s
        ]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        receipt = done.pop().result()

        if receipt.get("status") == 0:
            raise TransactionRevertedError(txn_hash, receipt)

        target_block = receipt["blockNumber"] + confirmations - 1
        while (
            max(await asyncio.gather(*[w.eth.block_number for w in web3s]))
            < target_block
        ):
            await asyncio.sleep(poll_interval)
        return receipt


async def send_transaction(
    transaction: dict, sign_callback: Callable, wait_for_receipt=True
) -> str:
    if sign_callback is None:
        raise ValueError("sign_callback must be provided to send transaction")

    logger.info(f"Broadcasting transaction {transaction}...")
    chain_id = get_transaction_chain_id(transaction)
    transaction = await gas_limit_transaction(transaction)
    transaction = await nonce_transaction(transaction)
    transaction = await gas_price_transaction(transaction)
    signed_transaction = await sign_callback(transaction)
    txn_hash = await broadcast_transaction(chain_id, signed_transaction)
    if isinstance(txn_hash, str) and not txn_hash.startswith("0x"):
        txn_hash = f"0x{txn_hash}"
    logger.info(f"Transaction broadcasted: {txn_hash}")
    if wait_for_receipt:
        try:
            await wait_for_transaction_receipt(chain_id, txn_hash)
        except TransactionRevertedError as exc:
            raise _revert_error(txn_hash, exc.receipt, transaction) from exc
    return txn_hash


def make_sign_callback(private_key: str) -> Callable:
    account = Account.from_key(private_key)

    async def sign_callback(tx: dict) -> bytes:
        signed = account.sign_transaction(tx)
        return signed.raw_transaction

    return sign_callback


async def sign_and_send_transaction(
    transaction: dict, private_key: str, wait_for_receipt: bool = True
) -> str:
    return await send_transaction(
        transaction, make_sign_callback(private_key), wait_for_receipt
    )


async def encode_call(
    *,
    target: str,
    abi: list[dict[str, Any]],
    fn_name: str,
    args: list[Any],
    from_address: str,
    chain_id: int,
    value: int = 0,
) -> dict[str, Any]:
    async with web3_from_chain_id(chain_id) as web3:
        try:
            contract = web3.eth.contract(
                address=web3.to_checksum_address(target),
                abi=abi,
            )
            data = contract.encode_abi(fn_name, args)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Failed to encode {fn_name}: {exc}") from exc

        return {
            "chainId": int(chain_id),
            "from": AsyncWeb3.to_checksum_address(from_address),
            "to": AsyncWeb3.to_checksum_address(target),
            "data": data,
            "value": int(value),
        }
