"""Verify all strategies conform to expected interface."""

import inspect
from importlib import import_module
from pathlib import Path

import pytest

from loop_vault.core.strategies import Strategy


def get_all_strategy_classes():
    """Discover all Strategy subclasses in loop_vault/strategies/."""
    strategies_dir = Path(__file__).parent.parent / "strategies"
    strategy_classes = []

    for strategy_dir in strategies_dir.iterdir():
        if not strategy_dir.is_dir() or strategy_dir.name.startswith("_"):
            continue
        strategy_file = strategy_dir / "strategy.py"
        if not strategy_file.exists():
            continue

        module_path = f"loop_vault.strategies.{strategy_dir.name}.strategy"
        module = import_module(module_path)
        for _name, obj in inspect.getmembers(module, inspect.isclass):
            if issubclass(obj, Strategy) and obj is not Strategy:
                strategy_classes.append((strategy_dir.name, obj))

    return strategy_classes


def test_strategies_are_discovered():
    names = [name for name, _ in get_all_strategy_classes()]
    assert "leveraged_loop_strategy" in names


@pytest.mark.parametrize("strategy_name,strategy_class", get_all_strategy_classes())
def test_lifecycle_methods_accept_kwargs(strategy_name, strategy_class):
    """
    deposit(), withdraw() and exit() forward extra keyword arguments
    (swap_min_out, price_limit, slippage_bp) into the loop parameters.
    """
    for method in ("deposit", "withdraw", "exit"):
        params = inspect.signature(getattr(strategy_class, method)).parameters
        has_var_keyword = any(
            p.kind == inspect.Parameter.VAR_KEYWORD for p in params.values()
        )
        assert has_var_keyword, (
            f"{strategy_class.__name__}.{method}() must accept **kwargs."
        )


@pytest.mark.parametrize("strategy_name,strategy_class", get_all_strategy_classes())
def test_strategy_has_test_and_examples(strategy_name, strategy_class):
    strategy_dir = Path(__file__).parent.parent / "strategies" / strategy_name
    assert (strategy_dir / "test_strategy.py").exists()
    assert (strategy_dir / "examples.json").exists()
