CHAIN_ID_ETHEREUM = 1
CHAIN_ID_OPTIMISM = 10
CHAIN_ID_POLYGON = 137
CHAIN_ID_BASE = 8453
CHAIN_ID_ARBITRUM = 42161

CHAIN_CODE_TO_ID = {
    "ethereum": CHAIN_ID_ETHEREUM,
    "mainnet": CHAIN_ID_ETHEREUM,
    "optimism": CHAIN_ID_OPTIMISM,
    "polygon": CHAIN_ID_POLYGON,
    "base": CHAIN_ID_BASE,
    "arbitrum": CHAIN_ID_ARBITRUM,
}

POA_MIDDLEWARE_CHAIN_IDS: set[int] = {CHAIN_ID_POLYGON}

PRE_EIP_1559_CHAIN_IDS: set[int] = {CHAIN_ID_ARBITRUM}
