from __future__ import annotations

import re
from pathlib import Path

import pytest

from cabinet_pm.config import DEFAULT_OUTDIR, RunConfig, dump_config, load_run_config


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch) -> None:
    for name in (
        "CABINET_PM_INPUT",
        "CABINET_PM_OUTDIR",
        "CABINET_PM_TIMESTAMP_OUTDIR",
        "CABINET_PM_PREV",
        "CABINET_PM_CURR",
        "CABINET_PM_FORMAT",
        "CABINET_PM_JSON_LOGS",
        "CABINET_PM_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_assess_defaults() -> None:
    command, cfg = load_run_config(argv=["assess", "bundle.json"])
    assert command == "assess"
    assert isinstance(cfg, RunConfig)
    assert cfg.input == Path("bundle.json")
    assert cfg.output_format == "table"
    assert cfg.show_findings is True
    assert cfg.json_logs is False
    assert cfg.log_level == "INFO"
    # Only report runs get a timestamped directory.
    assert cfg.outdir == Path(DEFAULT_OUTDIR)


def test_report_outdir_is_timestamped_by_default() -> None:
    _, cfg = load_run_config(argv=["report", "bundle.json", "--outdir", "runs"])
    assert cfg.outdir.parent == Path("runs")
    assert re.fullmatch(r"\d{8}T\d{6}Z", cfg.outdir.name)
    assert cfg.write_csv is True
    assert cfg.write_snapshot is True


def test_report_outdir_without_timestamp() -> None:
    _, cfg = load_run_config(argv=["report", "bundle.json", "--outdir", "runs", "--no-timestamp-outdir"])
    assert cfg.outdir == Path("runs")
    assert cfg.timestamp_outdir is False


def test_trend_parses_prev_and_curr() -> None:
    command, cfg = load_run_config(argv=["trend", "--prev", "a/snapshot.json", "--curr", "b/snapshot.json"])
    assert command == "trend"
    assert str(cfg.prev) == "a/snapshot.json"
    assert str(cfg.curr) == "b/snapshot.json"


def test_config_file_used_when_env_and_cli_missing(tmp_path) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("input: from-config.json\nwrite_csv: false\n", encoding="utf-8")

    _, cfg = load_run_config(argv=["report", "--config", str(cfg_path)])
    assert cfg.input == Path("from-config.json")
    assert cfg.write_csv is False


def test_json_config_file(tmp_path) -> None:
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text('{"output_format": "JSON", "show_findings": "no"}', encoding="utf-8")

    _, cfg = load_run_config(argv=["assess", "--config", str(cfg_path)])
    assert cfg.output_format == "json"
    assert cfg.show_findings is False


def test_repo_report_config_file_loads() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    cfg_path = repo_root / "config" / "report.yaml"
    _, cfg = load_run_config(argv=["report", "bundle.json", "--config", str(cfg_path)])
    assert cfg.outdir.parent == Path("out")
    assert cfg.write_csv is True
    assert cfg.write_snapshot is True
    assert cfg.log_level == "INFO"


def test_env_overrides_config_file(monkeypatch, tmp_path) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("input: from-config.json\n", encoding="utf-8")
    monkeypatch.setenv("CABINET_PM_INPUT", "from-env.json")

    _, cfg = load_run_config(argv=["assess", "--config", str(cfg_path)])
    assert cfg.input == Path("from-env.json")


def test_cli_overrides_env_and_config(monkeypatch, tmp_path) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("input: from-config.json\nlog_level: warning\n", encoding="utf-8")
    monkeypatch.setenv("CABINET_PM_INPUT", "from-env.json")
    monkeypatch.setenv("CABINET_PM_LOG_LEVEL", "error")

    _, cfg = load_run_config(argv=["assess", "from-cli.json", "--config", str(cfg_path), "--log-level", "debug"])
    assert cfg.input == Path("from-cli.json")
    assert cfg.log_level == "DEBUG"


def test_env_boolean_overrides_config_boolean(monkeypatch, tmp_path) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("json_logs: true\n", encoding="utf-8")
    monkeypatch.setenv("CABINET_PM_JSON_LOGS", "0")

    _, cfg = load_run_config(argv=["assess", "--config", str(cfg_path)])
    assert cfg.json_logs is False


def test_cli_can_disable_config_boolean(tmp_path) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("write_snapshot: true\n", encoding="utf-8")

    _, cfg = load_run_config(argv=["report", "--config", str(cfg_path), "--no-snapshot"])
    assert cfg.write_snapshot is False


def test_unknown_config_keys_warn(tmp_path) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("input: from-config.json\nworkers: 4\n", encoding="utf-8")

    with pytest.warns(UserWarning):
        _, cfg = load_run_config(argv=["assess", "--config", str(cfg_path)])
    assert cfg.input == Path("from-config.json")


def test_invalid_config_values_raise(monkeypatch, tmp_path) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("output_format: xml\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_run_config(argv=["assess", "--config", str(cfg_path)])

    cfg_path.write_text("write_csv: maybe\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_run_config(argv=["report", "--config", str(cfg_path)])

    monkeypatch.setenv("CABINET_PM_FORMAT", "xml")
    with pytest.raises(ValueError):
        load_run_config(argv=["assess"])


def test_missing_config_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_run_config(argv=["assess", "--config", str(tmp_path / "nope.yaml")])


def test_dump_config_is_plain_data() -> None:
    _, cfg = load_run_config(argv=["assess", "bundle.json", "--format", "json"])
    dumped = dump_config(cfg)
    assert dumped["input"] == "bundle.json"
    assert dumped["output_format"] == "json"
    assert dumped["prev"] is None
    assert dumped["started_at"] == cfg.started_at
