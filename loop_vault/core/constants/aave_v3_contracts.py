from __future__ import annotations

from eth_utils import to_checksum_address

from loop_vault.core.constants.chains import (
    CHAIN_ID_ARBITRUM,
    CHAIN_ID_BASE,
    CHAIN_ID_ETHEREUM,
    CHAIN_ID_POLYGON,
)

# Aave v3 Pool and AaveOracle per chain.
AAVE_V3_BY_CHAIN: dict[int, dict[str, str]] = {
    CHAIN_ID_ETHEREUM: {
        "pool": to_checksum_address("0x87870Bca3F3fD6335C3F4ce8392D69350B4fA4E2"),
        "oracle": to_checksum_address("0x54586bE62E3c3580375aE3723C145253060Ca0C2"),
    },
    CHAIN_ID_POLYGON: {
        "pool": to_checksum_address("0x794a61358D6845594F94dc1DB02A252b5b4814aD"),
        "oracle": to_checksum_address("0xb023e699F5a33916Ea823A16485e259257cA8Bd1"),
    },
    CHAIN_ID_BASE: {
        "pool": to_checksum_address("0xA238Dd80C259a72e81d7e4664a9801593F98d1c5"),
        "oracle": to_checksum_address("0x2Cc0Fc26eD4563A5ce5e8bdcfe1A2878676Ae156"),
    },
    CHAIN_ID_ARBITRUM: {
        "pool": to_checksum_address("0x794a61358D6845594F94dc1DB02A252b5b4814aD"),
        "oracle": to_checksum_address("0xb56c2F0B653B2e0b10C9b928C8580Ac5Df02C7C7"),
    },
}
