import json
import logging
import sys
from pathlib import Path

# Ensure project root on sys.path before importing the package
sys.path.append(str(Path(__file__).resolve().parents[1]))

from smc_confluence.config import AppConfig
from smc_confluence.main import main

T0 = 1_700_000_000_000
STEP = 15 * 60 * 1000


def write_csv(path, rows):
    lines = ["timestamp,open,high,low,close,volume"]
    for i, (o, h, l, c) in enumerate(rows):
        lines.append(f"{T0 + i * STEP},{o},{h},{l},{c},100")
    path.write_text("\n".join(lines) + "\n")


def test_mock_json_output(capsys):
    assert main(["--mock", "60", "--seed", "5", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["signal"] in ("BUY", "SELL", "NEUTRAL")
    assert set(data["confluences"]) == {"bullish", "bearish"}


def test_csv_summary(tmp_path, capsys):
    path = tmp_path / "bars.csv"
    write_csv(path, [
        (10.0, 10.5, 9.5, 10.2),
        (10.2, 11.0, 10.0, 10.8),
        (10.8, 10.9, 10.1, 10.3),
        (10.3, 12.0, 10.2, 11.9),
        (11.9, 12.5, 11.6, 12.2),
        (12.2, 12.3, 11.0, 11.2),
        (11.2, 11.3, 10.6, 10.8),
    ])
    assert main(["--csv", str(path), "--swing-length", "1"]) == 0
    out = capsys.readouterr().out
    assert "Signal: BUY" in out
    assert "Bullish score: 2/4" in out
    assert "BOS bullish at 12.50" in out
    assert "Trade: BUY" in out


def test_no_sweep_changes_scale(tmp_path, capsys):
    assert main(["--mock", "30", "--seed", "1", "--no-sweep"]) == 0
    assert "/3" in capsys.readouterr().out


def test_missing_csv_fails(tmp_path, capsys):
    assert main(["--csv", str(tmp_path / "missing.csv")]) == 1
    assert "not found" in capsys.readouterr().err


def test_malformed_csv_fails(tmp_path, capsys):
    path = tmp_path / "bars.csv"
    write_csv(path, [(10.0, 9.0, 9.5, 10.0)])
    assert main(["--csv", str(path)]) == 1
    assert "malformed bars" in capsys.readouterr().err


def test_invalid_override_fails(capsys):
    assert main(["--mock", "10", "--min-confluence", "7"]) == 1
    assert "invalid configuration" in capsys.readouterr().err


def test_config_file_is_used(tmp_path, capsys):
    path = tmp_path / "engine.yaml"
    path.write_text("engine:\n  include_sweep: false\n  min_confluence: 3\n")
    assert main(["--mock", "20", "--seed", "2", "--config", str(path)]) == 0
    assert "/3" in capsys.readouterr().out


def test_config_warnings_are_logged(tmp_path, caplog):
    path = tmp_path / "engine.yaml"
    path.write_text("theme: dark\nengine:\n  swing_length: 2\n")
    with caplog.at_level(logging.INFO):
        assert main(["--mock", "20", "--seed", "2", "--config", str(path)]) == 0
    assert "Ignoring unknown app config keys: ['theme']" in caplog.text


def test_logging_is_configured_before_config_loads(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append("basicConfig"))
    monkeypatch.setattr("smc_confluence.main.load_config",
                        lambda path: calls.append("load_config") or AppConfig(log_level="DEBUG"))
    monkeypatch.setattr(logging.getLogger(), "level", logging.getLogger().level)

    assert main(["--mock", "20", "--seed", "2", "--config", str(tmp_path / "engine.yaml")]) == 0
    assert calls == ["basicConfig", "load_config"]
    assert logging.getLogger().level == logging.DEBUG
