# Fixed addresses for the in-process simulation. All-digit addresses are
# already in checksum form.
SIM_COLLATERAL_TOKEN = "0x1000000000000000000000000000000000000001"
SIM_BORROW_TOKEN = "0x2000000000000000000000000000000000000002"
SIM_LENDING_POOL = "0x3000000000000000000000000000000000000003"
SIM_SWAP_ROUTER = "0x4000000000000000000000000000000000000004"
SIM_VAULT = "0x5000000000000000000000000000000000000005"
SIM_DEPOSITOR = "0x6000000000000000000000000000000000000006"
SIM_MANAGER = "0x7000000000000000000000000000000000000007"

DEFAULT_NUM_OF_LOOP = 3
DEFAULT_SLIPPAGE_BP = 50

# Health factor (WAD) below which update() reports the position as at risk.
MIN_HEALTHY_FACTOR = 1_050_000_000_000_000_000
