import sys
from pathlib import Path

# Ensure project root on sys.path before importing the package
sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest
import yaml
from smc_confluence.config import AppConfig, ConfigLoader, EngineConfig, load_config, save_config


def test_engine_defaults_are_valid():
    config = EngineConfig()
    assert config.validate() == []
    assert config.swing_length == 5
    assert config.min_confluence == 2
    assert config.max_score == 4


def test_engine_validation_errors():
    config = EngineConfig(swing_length=0, min_confluence=5, rr_ratio=0, sl_buffer=-1)
    errors = config.validate()
    assert len(errors) == 4
    assert any("swing_length" in e for e in errors)
    assert any("min_confluence" in e for e in errors)


def test_three_factor_scale_limits_min_confluence():
    assert EngineConfig(include_sweep=False, min_confluence=3).validate() == []
    assert EngineConfig(include_sweep=False, min_confluence=4).validate() != []


def test_app_config_normalizes_and_validates():
    config = AppConfig(symbol="ethusdt", log_level="debug")
    assert config.symbol == "ETHUSDT"
    assert config.validate() == []

    bad = AppConfig(history_limit=300, max_bars=200, log_level="LOUD")
    errors = bad.validate()
    assert any("history_limit" in e for e in errors)
    assert any("log level" in e for e in errors)


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "engine.yaml"
    config = AppConfig(symbol="SOLUSDT", engine=EngineConfig(swing_length=3, rr_ratio=3.0, include_sweep=False))
    assert save_config(config, str(path))

    data = yaml.safe_load(path.read_text())
    assert data["engine"]["swing_length"] == 3

    loaded = load_config(str(path))
    assert loaded == config


def test_missing_file_creates_default(tmp_path):
    path = tmp_path / "nested" / "engine.yaml"
    config = ConfigLoader(str(path)).load()
    assert config == AppConfig()
    assert path.exists()


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text("")
    assert load_config(str(path)) == AppConfig()


def test_invalid_values_raise(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text("engine:\n  min_confluence: 9\n")
    with pytest.raises(ValueError, match="validation failed"):
        load_config(str(path))


def test_unparseable_yaml_raises(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text("engine: [unclosed\n")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_unknown_keys_are_ignored(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text("symbol: xrpusdt\ntheme: dark\nengine:\n  swing_length: 4\n  colour: red\n")
    config = load_config(str(path))
    assert config.symbol == "XRPUSDT"
    assert config.engine.swing_length == 4


def test_save_refuses_invalid_config(tmp_path):
    path = tmp_path / "engine.yaml"
    assert not save_config(AppConfig(engine=EngineConfig(rr_ratio=-1)), str(path))
    assert not path.exists()
