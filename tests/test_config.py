"""
Tests for settings and flow parameters.
"""
from pathlib import Path

import pytest
from pydantic import ValidationError

from mizu.config import (
    AttributesParams,
    FlowParameters,
    get_settings,
    load_flow_parameters,
    load_settings,
)


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        settings = load_settings({})
        assert settings.network == "testnet"
        assert settings.fullnode_url == "https://fullnode.testnet.sui.io:443"
        assert settings.private_key is None
        assert settings.stage_timeout is None
        assert settings.params_file == Path("mizu.yaml")

    def test_environment_overrides(self, tmp_path):
        settings = load_settings(
            {
                "MIZU_NETWORK": "devnet",
                "MIZU_STATE_DIR": str(tmp_path),
                "MIZU_GAS_BUDGET": "5000000",
                "MIZU_STAGE_TIMEOUT": "90",
                "MIZU_LOG_LEVEL": "debug",
                "MIZU_LOG_JSON": "true",
            }
        )
        assert settings.fullnode_url == "https://fullnode.devnet.sui.io:443"
        assert settings.state_dir == tmp_path
        assert settings.gas_budget == 5_000_000
        assert settings.stage_timeout == 90.0
        assert settings.log_level == "DEBUG"
        assert settings.log_json is True

    def test_rpc_url_wins(self):
        settings = load_settings({"MIZU_RPC_URL": "http://localhost:9000"})
        assert settings.fullnode_url == "http://localhost:9000"

    def test_unknown_network(self):
        with pytest.raises(ValidationError):
            load_settings({"MIZU_NETWORK": "moonnet"})

    def test_private_key_is_secret(self):
        settings = load_settings({"PRIVATE_KEY": "c2VjcmV0"})
        assert settings.private_key.get_secret_value() == "c2VjcmV0"
        assert "c2VjcmV0" not in repr(settings)

    def test_mizu_key_preferred(self):
        settings = load_settings({"MIZU_PRIVATE_KEY": "a", "PRIVATE_KEY": "b"})
        assert settings.private_key.get_secret_value() == "a"

    def test_store_paths(self, tmp_path):
        settings = load_settings({"MIZU_STATE_DIR": str(tmp_path)})
        assert settings.store_path("admin") == tmp_path / "deployed_objects.json"
        assert settings.store_path("user1") == tmp_path / "user1_objects.json"

    def test_get_settings_is_cached(self, monkeypatch):
        get_settings.cache_clear()
        monkeypatch.setenv("MIZU_NETWORK", "devnet")
        try:
            first = get_settings()
            monkeypatch.setenv("MIZU_NETWORK", "mainnet")
            assert get_settings() is first
            assert first.network == "devnet"
        finally:
            get_settings.cache_clear()


class TestFlowParameters:
    """Tests for YAML flow parameters."""

    def test_missing_file_gives_defaults(self, tmp_path):
        params = load_flow_parameters(tmp_path / "mizu.yaml")
        assert params == FlowParameters()
        assert params.mint_settings.price == 100_000_000
        assert params.mint_settings.status == 1
        assert params.mint_settings.phase == 3

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "mizu.yaml"
        path.write_text(
            "water_cooler:\n"
            "  name: Cooler One\n"
            "  supply: 10\n"
            "mint_settings:\n"
            "  price: 5\n"
            "payment_coin: '0xc0'\n"
            "move_package: ../contracts\n"
        )
        params = load_flow_parameters(path)
        assert params.water_cooler.name == "Cooler One"
        assert params.water_cooler.supply == 10
        assert params.mint_settings.price == 5
        assert params.mint_settings.phase == 3
        assert params.payment_coin == "0xc0"
        assert params.move_package == Path("../contracts")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "mizu.yaml"
        path.write_text("")
        assert load_flow_parameters(path) == FlowParameters()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "mizu.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_flow_parameters(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "mizu.yaml"
        path.write_text("mint_settings:\n  status: 300\n")
        with pytest.raises(ValidationError):
            load_flow_parameters(path)

    def test_attribute_lengths_must_match(self):
        with pytest.raises(ValidationError):
            AttributesParams(keys=["a", "b"], values=["1"])
