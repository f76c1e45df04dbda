"""Tests for discovery configuration and the Python API."""

from __future__ import annotations

import json

import fakearithmetic
import pytest

from refract.api import discover, discover_from_config, load_target
from refract.config import DiscoverConfig, ReceiverSpec, load_config
from refract.conventions.ethereum import EthereumConvention
from refract.core.errors import ConfigError


def _write(tmp_path, data, name="refract.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_config_round_trip():
    config = DiscoverConfig(
        receivers=[ReceiverSpec("fakearithmetic:Calculator", name="calc", convention="ethereum")],
        title="calc",
        description="A calculator",
        flatten=True,
    )
    assert DiscoverConfig.from_dict(config.to_dict()) == config


def test_config_defaults():
    config = DiscoverConfig.from_dict({"receivers": [{"target": "fakearithmetic:CalculatorRPC"}]})
    assert config.convention == "standard"
    assert config.duplicate_policy == "allow"
    assert config.receivers == [ReceiverSpec("fakearithmetic:CalculatorRPC")]


@pytest.mark.parametrize("data", [
    {},
    {"receivers": [{"target": "not a target"}]},
    {"receivers": [], "duplicate_policy": "sometimes"},
    {"receivers": [], "unknown": 1},
])
def test_invalid_config(data):
    with pytest.raises(ConfigError):
        DiscoverConfig.from_dict(data)


def test_load_config(tmp_path):
    path = _write(tmp_path, {"title": "calc", "receivers": [{"target": "fakearithmetic:Calculator"}]})
    config = load_config(path)
    assert config.title == "calc"


def test_load_config_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid JSON"):
        load_config(path)


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="Cannot read"):
        load_config(tmp_path / "absent.json")


def test_load_target_instantiates_classes():
    assert isinstance(load_target("fakearithmetic:Calculator"), fakearithmetic.Calculator)


def test_load_target_module():
    assert load_target("fakearithmetic") is fakearithmetic


@pytest.mark.parametrize("target", ["no_such_module_xyz:Thing", "fakearithmetic:Missing"])
def test_load_target_errors(target):
    with pytest.raises(ConfigError):
        load_target(target)


def test_discover_from_config():
    config = DiscoverConfig(
        receivers=[
            ReceiverSpec("fakearithmetic:CalculatorRPC"),
            ReceiverSpec("fakearithmetic:Calculator", name="calc", convention="ethereum"),
        ],
        title="calc",
        version="2.0",
        validate=True,
    )
    openrpc = discover_from_config(config)
    assert openrpc.info.title == "calc"
    assert openrpc.info.version.startswith("2.0+")
    assert "CalculatorRPC.Add" in openrpc.method_names
    assert "calc_add" in openrpc.method_names


def test_discover_api_receiver_forms():
    openrpc = discover(
        [
            fakearithmetic.CalculatorRPC(),
            ("calc", fakearithmetic.Calculator(), EthereumConvention()),
            ("other", fakearithmetic.CalculatorRPC()),
        ],
        title="calc",
    )
    names = openrpc.method_names
    assert "CalculatorRPC.Add" in names
    assert "calc_add" in names
    assert "other.Add" in names


def test_discover_api_convention_by_name():
    openrpc = discover([fakearithmetic.Calculator()], convention="ethereum", flatten=True)
    assert "calculator_add" in openrpc.method_names
    assert openrpc.components.schemas


def test_discover_api_source_links():
    openrpc = discover(
        [fakearithmetic.CalculatorRPC()],
        source_links={"fakearithmetic": "https://example.com/calc/blob/main"},
    )
    docs = openrpc.method("CalculatorRPC.Add").external_docs
    assert docs.url.startswith("https://example.com/calc/blob/main/fakearithmetic.py#L")
