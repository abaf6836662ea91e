from __future__ import annotations

import argparse
import json
import os
import warnings
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

# --------
# Defaults
# --------
DEFAULT_OUTDIR = "out"
OUTPUT_FORMATS = {"table", "json"}
ALLOWED_CONFIG_KEYS = {
    "input",
    "outdir",
    "timestamp_outdir",
    "prev",
    "curr",
    "output_format",
    "show_findings",
    "write_csv",
    "write_snapshot",
    "json_logs",
    "log_level",
}
BOOL_CONFIG_KEYS = {"timestamp_outdir", "show_findings", "write_csv", "write_snapshot", "json_logs"}
PATH_CONFIG_KEYS = {"input", "outdir", "prev", "curr"}
STR_CONFIG_KEYS = {"output_format", "log_level"}


@dataclass(frozen=True)
class RunConfig:
    # General
    input: Optional[Path] = None
    outdir: Path = Path(DEFAULT_OUTDIR)
    timestamp_outdir: bool = True
    prev: Optional[Path] = None
    curr: Optional[Path] = None
    json_logs: bool = False
    log_level: str = "INFO"

    # Output
    output_format: str = "table"  # table|json
    show_findings: bool = True
    write_csv: bool = True
    write_snapshot: bool = True

    # Internal/derived
    started_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="seconds")
    )


def _parse_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Top-level config must be an object")
    return data


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    return raw


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip().lower()
    if not raw:
        return None
    return raw in {"1", "true", "yes", "on"}


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in {"1", "true", "yes", "on"}:
            return True
        if raw in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"Config field '{key}' must be a boolean")


def _normalize_config_file(data: Dict[str, Any]) -> Dict[str, Any]:
    unknown = sorted(set(data.keys()) - ALLOWED_CONFIG_KEYS)
    if unknown:
        warnings.warn(f"Unknown config keys ignored: {', '.join(unknown)}")
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in ALLOWED_CONFIG_KEYS:
            continue
        if value is None:
            normalized[key] = None
            continue
        if key in BOOL_CONFIG_KEYS:
            normalized[key] = _coerce_bool(key, value)
        elif key in PATH_CONFIG_KEYS:
            if isinstance(value, (str, Path)):
                normalized[key] = value
            else:
                raise ValueError(f"Config field '{key}' must be a string path")
        elif key in STR_CONFIG_KEYS:
            if isinstance(value, str):
                normalized[key] = value
            else:
                raise ValueError(f"Config field '{key}' must be a string")
    output_format = normalized.get("output_format")
    if output_format is not None:
        output_format = str(output_format).lower()
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Config field 'output_format' must be one of: {', '.join(sorted(OUTPUT_FORMATS))}")
        normalized["output_format"] = output_format
    return _compact_dict(normalized)


def _compact_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop keys with None values so they don't override lower-precedence config.
    """
    return {k: v for k, v in data.items() if v is not None}


def _merge_dicts(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow merge: values in b override a.
    """
    merged = dict(a)
    merged.update(b)
    return merged


def _timestamp_dir(base: Union[str, Path]) -> Path:
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return Path(base) / ts


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cabinet-pm", description="Cabinet PM risk assessment and report CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # common flags builder
    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", type=Path, help="Optional YAML/JSON config file")
        p.add_argument(
            "--json-logs",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Enable JSON logs",
        )
        p.add_argument("--log-level", default=None, help="Log level (INFO, DEBUG, ...)")

    # assess
    p_assess = subparsers.add_parser("assess", help="Score a PM session and print the risk summary")
    add_common(p_assess)
    p_assess.add_argument("input", nargs="?", type=Path, default=None, help="Session bundle (JSON or YAML)")
    p_assess.add_argument(
        "--format",
        dest="output_format",
        default=None,
        choices=sorted(OUTPUT_FORMATS),
        help="Console output format (default: table)",
    )
    p_assess.add_argument(
        "--findings",
        dest="show_findings",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="List individual findings under the summary table",
    )

    # report
    p_report = subparsers.add_parser("report", help="Write the full maintenance report for a PM session")
    add_common(p_report)
    p_report.add_argument("input", nargs="?", type=Path, default=None, help="Session bundle (JSON or YAML)")
    p_report.add_argument("--outdir", type=Path, default=None, help="Output base directory (out/TS)")
    p_report.add_argument(
        "--timestamp-outdir",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Write into a timestamped subdirectory of --outdir (default: on)",
    )
    p_report.add_argument(
        "--csv",
        dest="write_csv",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also write findings.csv",
    )
    p_report.add_argument(
        "--snapshot",
        dest="write_snapshot",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also write snapshot.json for trend tracking",
    )

    # trend
    p_trend = subparsers.add_parser("trend", help="Compare two metric snapshots")
    add_common(p_trend)
    p_trend.add_argument("--prev", type=Path, required=False, help="Previous snapshot.json")
    p_trend.add_argument("--curr", type=Path, required=False, help="Current snapshot.json")
    p_trend.add_argument("--outdir", type=Path, default=None, help="Output dir for trend.json")

    return parser


def load_run_config(
    args: Optional[argparse.Namespace] = None,
    argv: Optional[List[str]] = None,
) -> Tuple[str, RunConfig]:
    """
    Build RunConfig by merging defaults, optional config file, env vars, and CLI args.
    Precedence (low -> high): defaults < config file < env < CLI.

    Returns:
      (command, RunConfig) where command is the subcommand selected: assess|report|trend
    """
    ns = args if args is not None else build_parser().parse_args(argv)
    command = ns.command

    # defaults
    base: Dict[str, Any] = {
        "input": None,
        "outdir": DEFAULT_OUTDIR,
        "timestamp_outdir": True,
        "prev": None,
        "curr": None,
        "output_format": "table",
        "show_findings": True,
        "write_csv": True,
        "write_snapshot": True,
        "json_logs": False,
        "log_level": "INFO",
    }

    # config file
    file_cfg: Dict[str, Any] = {}
    if getattr(ns, "config", None):
        file_cfg = _normalize_config_file(_parse_config_file(Path(ns.config)))

    # env
    env_cfg: Dict[str, Any] = _compact_dict(
        {
            "input": _env_str("CABINET_PM_INPUT"),
            "outdir": _env_str("CABINET_PM_OUTDIR"),
            "timestamp_outdir": _env_bool("CABINET_PM_TIMESTAMP_OUTDIR"),
            "prev": _env_str("CABINET_PM_PREV"),
            "curr": _env_str("CABINET_PM_CURR"),
            "output_format": _env_str("CABINET_PM_FORMAT"),
            "json_logs": _env_bool("CABINET_PM_JSON_LOGS"),
            "log_level": _env_str("CABINET_PM_LOG_LEVEL"),
        }
    )

    # CLI
    cli_cfg: Dict[str, Any] = _compact_dict(
        {
            "input": getattr(ns, "input", None),
            "outdir": getattr(ns, "outdir", None),
            "timestamp_outdir": getattr(ns, "timestamp_outdir", None),
            "prev": getattr(ns, "prev", None),
            "curr": getattr(ns, "curr", None),
            "output_format": getattr(ns, "output_format", None),
            "show_findings": getattr(ns, "show_findings", None),
            "write_csv": getattr(ns, "write_csv", None),
            "write_snapshot": getattr(ns, "write_snapshot", None),
            "json_logs": getattr(ns, "json_logs", None),
            "log_level": getattr(ns, "log_level", None),
        }
    )

    merged = _merge_dicts(base, _merge_dicts(file_cfg, _merge_dicts(env_cfg, cli_cfg)))

    # Normalize/construct types
    output_format = str(merged.get("output_format") or "table").lower()
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Output format must be one of: {', '.join(sorted(OUTPUT_FORMATS))}")
    timestamp_outdir = bool(merged["timestamp_outdir"])
    outdir_raw = merged.get("outdir") or DEFAULT_OUTDIR
    outdir = _timestamp_dir(outdir_raw) if command == "report" and timestamp_outdir else Path(outdir_raw)

    cfg = RunConfig(
        input=Path(merged["input"]) if merged.get("input") else None,
        outdir=outdir,
        timestamp_outdir=timestamp_outdir,
        prev=Path(merged["prev"]) if merged.get("prev") else None,
        curr=Path(merged["curr"]) if merged.get("curr") else None,
        json_logs=bool(merged["json_logs"]),
        log_level=(merged.get("log_level") or "INFO").upper(),
        output_format=output_format,
        show_findings=bool(merged["show_findings"]),
        write_csv=bool(merged["write_csv"]),
        write_snapshot=bool(merged["write_snapshot"]),
    )
    return command, cfg


def dump_config(cfg: RunConfig) -> Dict[str, Any]:
    return {
        "input": str(cfg.input) if cfg.input else None,
        "outdir": str(cfg.outdir),
        "timestamp_outdir": cfg.timestamp_outdir,
        "prev": str(cfg.prev) if cfg.prev else None,
        "curr": str(cfg.curr) if cfg.curr else None,
        "json_logs": cfg.json_logs,
        "log_level": cfg.log_level,
        "output_format": cfg.output_format,
        "show_findings": cfg.show_findings,
        "write_csv": cfg.write_csv,
        "write_snapshot": cfg.write_snapshot,
        "started_at": cfg.started_at,
    }
