from web3 import AsyncWeb3

from loop_vault.core.constants.erc20_abi import ERC20_ABI
from loop_vault.core.utils.web3 import web3_from_chain_id


async def get_token_balance(
    token_address: str,
    chain_id: int,
    wallet_address: str,
    *,
    web3: AsyncWeb3 | None = None,
    block_identifier: str | int = "pending",
) -> int:
    async def _read_with_web3(w3: AsyncWeb3) -> int:
        contract = w3.eth.contract(
            address=w3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        balance = await contract.functions.balanceOf(
            w3.to_checksum_address(wallet_address)
        ).call(block_identifier=block_identifier)
        return int(balance)

    if web3 is None:
        async with web3_from_chain_id(chain_id) as w3:
            return await _read_with_web3(w3)
    return await _read_with_web3(web3)


async def get_token_allowance(
    token_address: str, chain_id: int, owner_address: str, spender_address: str
) -> int:
    async with web3_from_chain_id(chain_id) as web3:
        contract = web3.eth.contract(
            address=web3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        allowance = await contract.functions.allowance(
            web3.to_checksum_address(owner_address),
            web3.to_checksum_address(spender_address),
        ).call(block_identifier="pending")
        return int(allowance)


async def _build_token_call(
    from_address: str,
    chain_id: int,
    token_address: str,
    fn_name: str,
    args: list,
) -> dict:
    async with web3_from_chain_id(chain_id) as web3:
        token_checksum = web3.to_checksum_address(token_address)
        contract = web3.eth.contract(address=token_checksum, abi=ERC20_ABI)
        data = contract.encode_abi(fn_name, args)
        return {
            "to": token_checksum,
            "from": web3.to_checksum_address(from_address),
            "data": data,
            "chainId": chain_id,
        }


async def build_approve_transaction(
    from_address: str,
    chain_id: int,
    token_address: str,
    spender_address: str,
    amount: int,
) -> dict:
    return await _build_token_call(
        from_address,
        chain_id,
        token_address,
        "approve",
        [AsyncWeb3.to_checksum_address(spender_address), amount],
    )


async def build_send_transaction(
    from_address: str,
    to_address: str,
    token_address: str,
    chain_id: int,
    amount: int,
) -> dict:
    return await _build_token_call(
        from_address,
        chain_id,
        token_address,
        "transfer",
        [AsyncWeb3.to_checksum_address(to_address), amount],
    )


async def build_transfer_from_transaction(
    from_address: str,
    owner_address: str,
    to_address: str,
    token_address: str,
    chain_id: int,
    amount: int,
) -> dict:
    return await _build_token_call(
        from_address,
        chain_id,
        token_address,
        "transferFrom",
        [
            AsyncWeb3.to_checksum_address(owner_address),
            AsyncWeb3.to_checksum_address(to_address),
            amount,
        ],
    )
