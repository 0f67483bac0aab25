"""YAML configuration loading."""
import pytest
from pydantic import ValidationError

from seigate.config import load_config


def test_defaults():
    config = load_config()
    assert config.server.port == 3004
    assert config.server.host == "0.0.0.0"
    assert config.backend.default_network == "sei"
    assert config.networks["sei"].chain_id == 1329
    assert set(config.networks) == {"sei", "sei-testnet", "sei-devnet"}
    assert config.cors.allow_origins == ["*"]


def test_user_file_overrides(tmp_path):
    path = tmp_path / "seigate.yaml"
    path.write_text(
        "server:\n"
        "  port: 9000\n"
        "networks:\n"
        "  local:\n"
        "    chain_id: 31337\n"
        "    rpc_url: http://127.0.0.1:8545\n"
        "backend:\n"
        "  default_network: local\n"
    )
    config = load_config(path)
    assert config.server.port == 9000
    assert config.server.name == "SEI MCP Server"
    assert list(config.networks) == ["local"]
    assert config.backend.default_network == "local"
    assert config.backend.cosmos_rest_urls


def test_invalid_config(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("server:\n  port: not-a-port\n")
    with pytest.raises(ValidationError):
        load_config(path)
