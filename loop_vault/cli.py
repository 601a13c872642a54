from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import asdict
from typing import Any

import click
from loguru import logger
from pydantic import ValidationError

from loop_vault.adapters.simulated_market_adapter.state import SimulationError
from loop_vault.core.config import load_config
from loop_vault.core.engine.types import LoopParams
from loop_vault.core.errors import LoopVaultError
from loop_vault.core.utils.transaction import TransactionRevertedError
from loop_vault.strategies.leveraged_loop_strategy.constants import (
    DEFAULT_NUM_OF_LOOP,
    SIM_BORROW_TOKEN,
    SIM_COLLATERAL_TOKEN,
    SIM_DEPOSITOR,
    SIM_VAULT,
)
from loop_vault.strategies.leveraged_loop_strategy.strategy import (
    SimulatedDeployment,
    deploy_simulation,
)

DEFAULT_AMOUNT = 10**18

_log_level_option = click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config JSON (defaults to LOOP_VAULT_CONFIG_PATH or ./config.json).",
)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _setup(config_path: str | None, log_level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=str(log_level).upper())
    if config_path:
        load_config(config_path, require_exists=True)


async def _balances(deployment: SimulatedDeployment) -> dict[str, Any]:
    controller = deployment.controller
    chain = deployment.chain
    return {
        "vault_collateral": chain.balance(SIM_COLLATERAL_TOKEN, SIM_VAULT),
        "vault_borrow_asset": chain.balance(SIM_BORROW_TOKEN, SIM_VAULT),
        "depositor_collateral": chain.balance(SIM_COLLATERAL_TOKEN, SIM_DEPOSITOR),
        "depositor_shares": controller.vault.balance_of(SIM_DEPOSITOR),
        "supplied_in_quote": await controller.supplied_in_quote(),
        "borrowed_in_quote": await controller.borrowed_in_quote(),
        "exchange_rate": controller.exchange_rate(),
    }


async def _simulate(
    amount: int, withdraw: int, loop_args: dict[str, int]
) -> dict[str, Any]:
    params = LoopParams(**loop_args)
    deployment = deploy_simulation()
    controller = deployment.controller
    result: dict[str, Any] = {}

    shares = await controller.deposit_with_loop(
        amount, SIM_DEPOSITOR, params, caller=SIM_DEPOSITOR
    )
    result["deposit"] = {
        "assets": amount,
        "shares": shares,
        "operations": [op.model_dump() for op in controller.last_loop_report.operations],
        "balances": await _balances(deployment),
    }

    if withdraw:
        burned = await controller.withdraw_from_loop(
            withdraw, SIM_DEPOSITOR, SIM_DEPOSITOR, params, caller=SIM_DEPOSITOR
        )
        report = controller.last_unwind_report
        result["withdraw"] = {
            "assets": withdraw,
            "shares": burned,
            "unwind_passes": report.passes if report else 0,
            "operations": [op.model_dump() for op in report.operations] if report else [],
            "balances": await _balances(deployment),
        }
    return result


async def _position(amount: int, num_of_loop: int) -> dict[str, Any]:
    params = LoopParams(num_of_loop=num_of_loop)
    deployment = deploy_simulation()
    await deployment.controller.deposit_with_loop(
        amount, SIM_DEPOSITOR, params, caller=SIM_DEPOSITOR
    )
    snapshot = await deployment.controller.account_snapshot()
    return {
        "account": SIM_VAULT,
        "snapshot": asdict(snapshot),
        "withdrawable_collateral": (
            await deployment.controller.position.withdrawable_collateral()
        ),
    }


# Reported as JSON with exit code 1; anything else propagates.
_REPORTED_ERRORS = (
    LoopVaultError,
    SimulationError,
    TransactionRevertedError,
    ValidationError,
)


def _run(coro: Any) -> None:
    try:
        result = asyncio.run(coro)
    except _REPORTED_ERRORS as exc:
        _echo_json({"ok": False, "error": type(exc).__name__, "details": str(exc)})
        sys.exit(1)
    _echo_json({"ok": True, "result": result})


@click.group(name="loop-vault", help="Leveraged loop vault on a simulated market.")
def cli() -> None:
    pass


@cli.command(name="simulate", help="Deposit with loop, then optionally withdraw.")
@click.option("--amount", type=int, default=DEFAULT_AMOUNT, show_default=True)
@click.option(
    "--num-of-loop", type=int, default=DEFAULT_NUM_OF_LOOP, show_default=True
)
@click.option(
    "--withdraw",
    type=int,
    default=0,
    show_default=True,
    help="Assets to withdraw after the deposit (0 skips the withdrawal).",
)
@click.option("--swap-min-out", type=int, default=0, show_default=True)
@click.option("--slippage-bp", type=int, default=0, show_default=True)
@_config_option
@_log_level_option
def simulate_cmd(
    amount: int,
    num_of_loop: int,
    withdraw: int,
    swap_min_out: int,
    slippage_bp: int,
    config_path: str | None,
    log_level: str,
) -> None:
    _setup(config_path, log_level)
    loop_args = {
        "num_of_loop": num_of_loop,
        "swap_min_out": swap_min_out,
        "slippage_bp": slippage_bp,
    }
    _run(_simulate(amount, withdraw, loop_args))


@cli.command(name="position", help="Print the account snapshot after a deposit.")
@click.option("--amount", type=int, default=DEFAULT_AMOUNT, show_default=True)
@click.option(
    "--num-of-loop", type=int, default=DEFAULT_NUM_OF_LOOP, show_default=True
)
@_config_option
@_log_level_option
def position_cmd(
    amount: int, num_of_loop: int, config_path: str | None, log_level: str
) -> None:
    _setup(config_path, log_level)
    _run(_position(amount, num_of_loop))


if __name__ == "__main__":
    cli()
