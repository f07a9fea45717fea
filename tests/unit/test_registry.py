"""Unit tests for loading the symbol registry."""

import json

import pytest

from utils.registry import RegistryError, load_registry


class TestLoadRegistry:
    """Tests for load_registry."""

    def test_loads_mapping(self, tmp_path):
        path = tmp_path / "registry.json"
        path.write_text(json.dumps({"SPY": "SPDR S&P 500 ETF Trust", "AAPL": "Apple Inc"}))

        assert load_registry(path) == {"SPY": "SPDR S&P 500 ETF Trust", "AAPL": "Apple Inc"}

    def test_missing_file(self, tmp_path):
        path = tmp_path / "missing.json"
        with pytest.raises(RegistryError, match="failed to open registry file") as exc_info:
            load_registry(path)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "registry.json"
        path.write_text("{not json")
        with pytest.raises(RegistryError, match="failed to read registry"):
            load_registry(path)

    @pytest.mark.parametrize("content", [["SPY"], {"SPY": 1}, "SPY"])
    def test_wrong_shape(self, tmp_path, content):
        path = tmp_path / "registry.json"
        path.write_text(json.dumps(content))
        with pytest.raises(RegistryError, match="expected an object"):
            load_registry(path)
