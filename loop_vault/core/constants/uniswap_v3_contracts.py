from loop_vault.core.constants.chains import (
    CHAIN_ID_ARBITRUM,
    CHAIN_ID_BASE,
    CHAIN_ID_ETHEREUM,
    CHAIN_ID_OPTIMISM,
    CHAIN_ID_POLYGON,
)

# SwapRouter02 deployments.
UNISWAP_V3_SWAP_ROUTER: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45",
    CHAIN_ID_OPTIMISM: "0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45",
    CHAIN_ID_POLYGON: "0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45",
    CHAIN_ID_ARBITRUM: "0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45",
    CHAIN_ID_BASE: "0x2626664c2603336E57B271c5C0b26F421741e481",
}
