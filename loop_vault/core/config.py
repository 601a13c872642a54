import json
import os
from pathlib import Path
from typing import Any

_CONFIG_ENV_KEYS = ("LOOP_VAULT_CONFIG_PATH", "LOOP_VAULT_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"

# Base mainnet wstETH / WETH, the canonical correlated pair for this strategy.
DEFAULT_STRATEGY_SETTINGS: dict[str, Any] = {
    "chain_id": 8453,
    "collateral_asset": "0xc1CBa3fCea344f92D9239c08C0568f6F2F0ee452",
    "borrow_asset": "0x4200000000000000000000000000000000000006",
    "pool_fee": 100,
    "rate_mode": 2,
    "has_allocators": True,
}

DEFAULT_SIMULATION_SETTINGS: dict[str, Any] = {
    "collateral_price": 100_000_000,
    "borrow_price": 100_000_000,
    "ltv_bp": 5_000,
    "liquidation_threshold_bp": 9_000,
    "pool_fee": 0,
    "market_liquidity": 1_000 * 10**18,
    "venue_liquidity": 1_000 * 10**18,
    "depositor_balance": 10 * 10**18,
}


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except json.JSONDecodeError:
        return {}


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get("strategy", {}).get("rpc_urls", {})


def get_strategy_settings() -> dict[str, Any]:
    strategy = CONFIG.get("strategy", {})
    return {
        key: strategy.get(key, default)
        for key, default in DEFAULT_STRATEGY_SETTINGS.items()
    }


def get_simulation_settings() -> dict[str, Any]:
    simulation = CONFIG.get("simulation", {})
    settings = {
        key: int(simulation.get(key, default))
        for key, default in DEFAULT_SIMULATION_SETTINGS.items()
    }
    settings["has_allocators"] = bool(
        simulation.get("has_allocators", get_strategy_settings()["has_allocators"])
    )
    return settings
