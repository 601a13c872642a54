from __future__ import annotations

import copy
from pathlib import Path

import pytest

import loop_vault.core.config as config


@pytest.fixture
def restore_global_config() -> None:
    original = copy.deepcopy(config.CONFIG)
    yield
    config.set_config(original)


def test_resolve_config_path_defaults_to_repo_root(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("LOOP_VAULT_CONFIG_PATH", raising=False)
    monkeypatch.delenv("LOOP_VAULT_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    repo_root = Path(__file__).resolve().parents[2]
    assert config.resolve_config_path() == repo_root / "config.json"


def test_resolve_config_path_env_relative_is_repo_relative(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("LOOP_VAULT_CONFIG_PATH", "config.example.json")
    monkeypatch.chdir(tmp_path)

    repo_root = Path(__file__).resolve().parents[2]
    assert config.resolve_config_path() == repo_root / "config.example.json"


def test_explicit_path_wins(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOOP_VAULT_CONFIG_PATH", "config.example.json")
    assert config.resolve_config_path(tmp_path / "x.json") == tmp_path / "x.json"


def test_load_config_json_supports_env_override(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("LOOP_VAULT_CONFIG_PATH", "config.example.json")
    monkeypatch.chdir(tmp_path)

    cfg = config.load_config_json()
    assert isinstance(cfg.get("strategy"), dict)
    assert isinstance(cfg["strategy"].get("rpc_urls"), dict)
    assert isinstance(cfg.get("simulation"), dict)


def test_load_config_json_missing_and_invalid(tmp_path: Path) -> None:
    assert config.load_config_json(tmp_path / "missing.json") == {}
    with pytest.raises(FileNotFoundError):
        config.load_config_json(tmp_path / "missing.json", require_exists=True)

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    assert config.load_config_json(broken) == {}


def test_settings_fall_back_to_defaults(restore_global_config: None) -> None:
    config.set_config({})

    assert config.get_strategy_settings() == config.DEFAULT_STRATEGY_SETTINGS
    simulation = config.get_simulation_settings()
    assert simulation["ltv_bp"] == 5_000
    assert simulation["has_allocators"] is True
    assert config.get_rpc_urls() == {}


def test_settings_overrides(restore_global_config: None) -> None:
    config.set_config(
        {
            "strategy": {"pool_fee": 500, "has_allocators": False},
            "simulation": {"ltv_bp": "7000"},
        }
    )

    assert config.get_strategy_settings()["pool_fee"] == 500
    simulation = config.get_simulation_settings()
    assert simulation["ltv_bp"] == 7_000
    assert simulation["has_allocators"] is False


def test_set_config_mutates_in_place(restore_global_config: None) -> None:
    cfg_ref = config.CONFIG
    config.set_config({"strategy": {"rpc_urls": {8453: "https://example.invalid"}}})

    assert cfg_ref is config.CONFIG
    assert config.get_rpc_urls() == {8453: "https://example.invalid"}
