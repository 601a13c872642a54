GAS_BUFFER_MULTIPLIER = 1.1
SUGGESTED_PRIORITY_FEE_MULTIPLIER = 1.5
SUGGESTED_GAS_PRICE_MULTIPLIER = 1.5
MAX_BASE_FEE_GROWTH_MULTIPLIER = 2

# Timeout constants (seconds)
DEFAULT_TRANSACTION_TIMEOUT = 180  # Transaction receipt timeout (seconds)

ADAPTER_AAVE_V3 = "AAVE_V3"
ADAPTER_UNISWAP = "UNISWAP"
ADAPTER_TOKEN = "TOKEN"
ADAPTER_SIMULATED = "SIMULATED"

# Fixed-point scales shared by the engine, the vault and the adapters.
PRECISION = 10**18
BASIS_POINTS = 10_000
MAX_UINT256 = 2**256 - 1
MAX_UINT16 = 2**16 - 1

# Aave base-currency values and oracle prices use 8 decimals.
BASE_CURRENCY_DECIMALS = 8
BASE_CURRENCY_UNIT = 10**BASE_CURRENCY_DECIMALS

# Uniswap fee tiers are expressed in hundredths of a bip.
FEE_TIER_SCALE = 1_000_000
DEFAULT_POOL_FEE = 100

VARIABLE_RATE_MODE = 2
REFERRAL_CODE = 0

ALLOCATOR_ROLE = "ALLOCATOR"
MANAGER_ROLE = "MANAGER"
