from __future__ import annotations

import logging
import sys
from pathlib import Path
from time import perf_counter
from typing import Any, Dict, Optional

from .config import RunConfig, dump_config, load_run_config
from .document.assemble import assemble_bundle
from .export.csv import write_findings_csv
from .export.json import assessment_to_dict, write_assessment_json, write_report_json
from .export.markdown import write_report_md
from .history.snapshot import build_metric_snapshot, write_snapshot
from .history.trend import diff_snapshot_files, write_trend
from .logging import LogConfig, add_run_log_file, get_logger, setup_logging
from .normalize.schema import SessionBundle, resolve_output_paths
from .normalize.transform import load_session_bundle, stable_json_dumps
from .risk.aggregate import aggregate, collect_findings
from .util.errors import ConfigError, as_exit_code
from .util.rich_summary import render_assessment_table

LOG = get_logger(__name__)


class _StepTimers:
    def __init__(self) -> None:
        self._starts: Dict[str, float] = {}

    def start(self, key: str) -> None:
        self._starts[key] = perf_counter()

    def finish(self, key: str) -> Optional[int]:
        started = self._starts.pop(key, None)
        if started is None:
            return None
        return int((perf_counter() - started) * 1000)


def _log_event(
    logger: Any,
    level: int,
    message: str,
    *,
    step: str,
    phase: str,
    timers: Optional[_StepTimers] = None,
    **extra: Any,
) -> None:
    duration_ms = None
    if timers is not None:
        if phase == "start":
            timers.start(step)
        elif phase in {"complete", "error", "skipped"}:
            duration_ms = timers.finish(step)
    payload: Dict[str, Any] = {"step": step, "phase": phase, "event": f"{step}.{phase}"}
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    payload.update(extra)
    logger.log(level, message, extra=payload)


def _require_input(cfg: RunConfig, command: str) -> Path:
    if cfg.input is None:
        raise ConfigError(f"{command} requires a session bundle path")
    return cfg.input


def _load(cfg: RunConfig, command: str, timers: _StepTimers) -> SessionBundle:
    path = _require_input(cfg, command)
    _log_event(LOG, logging.INFO, "Loading session bundle", step="load", phase="start", timers=timers, path=str(path))
    bundle = load_session_bundle(path)
    _log_event(LOG, logging.INFO, "Session bundle ready", step="load", phase="complete", timers=timers)
    return bundle


def cmd_assess(cfg: RunConfig) -> int:
    timers = _StepTimers()
    bundle = _load(cfg, "assess", timers)
    collected = collect_findings(bundle.cabinets, bundle.node_maintenance)
    assessment = aggregate(collected.findings, collected.scanned, collected.failed)

    if cfg.output_format == "json":
        sys.stdout.write(stable_json_dumps(assessment_to_dict(assessment)) + "\n")
    else:
        render_assessment_table(
            assessment,
            session_name=bundle.session.session_name,
            show_findings=cfg.show_findings,
        )
    return 0


def cmd_report(cfg: RunConfig) -> int:
    timers = _StepTimers()
    paths = resolve_output_paths(cfg.outdir)
    paths.root.mkdir(parents=True, exist_ok=True)
    add_run_log_file(paths.debug_log)
    _log_event(LOG, logging.DEBUG, "Run configuration", step="config", phase="loaded", config=dump_config(cfg))

    bundle = _load(cfg, "report", timers)

    _log_event(LOG, logging.INFO, "Assessing risk", step="assess", phase="start", timers=timers)
    collected = collect_findings(bundle.cabinets, bundle.node_maintenance)
    assessment = aggregate(collected.findings, collected.scanned, collected.failed)
    _log_event(
        LOG,
        logging.INFO,
        "Risk assessed",
        step="assess",
        phase="complete",
        timers=timers,
        score=assessment.score,
        risk_level=assessment.level.value,
    )

    _log_event(LOG, logging.INFO, "Writing report", step="export", phase="start", timers=timers)
    sections = assemble_bundle(bundle, assessment=assessment, generated_at=cfg.started_at)
    write_report_md(paths.report_md, sections)
    write_report_json(paths.report_json, sections)
    write_assessment_json(paths.assessment_json, assessment, session=bundle.session)
    if cfg.write_csv:
        write_findings_csv(collected.findings, paths.findings_csv)
    if cfg.write_snapshot:
        write_snapshot(paths.snapshot_json, build_metric_snapshot(bundle, assessment, recorded_at=cfg.started_at))
    _log_event(
        LOG,
        logging.INFO,
        "Report written",
        step="export",
        phase="complete",
        timers=timers,
        outdir=str(paths.root),
        sections=len(sections),
    )
    return 0


def cmd_trend(cfg: RunConfig) -> int:
    prev = cfg.prev
    curr = cfg.curr
    if not prev or not curr:
        raise ConfigError("Both --prev and --curr must be provided for trend")
    timers = _StepTimers()
    _log_event(LOG, logging.INFO, "Trend started", step="trend", phase="start", timers=timers)
    trend = diff_snapshot_files(Path(prev), Path(curr))
    path = write_trend(cfg.outdir, trend)
    _log_event(
        LOG,
        logging.INFO,
        "Trend complete",
        step="trend",
        phase="complete",
        timers=timers,
        path=str(path),
        direction=trend["level"]["direction"],
    )
    return 0


def main() -> None:
    try:
        command, cfg = load_run_config()
        setup_logging(LogConfig(level=cfg.log_level, json_logs=cfg.json_logs))

        if command == "assess":
            code = cmd_assess(cfg)
        elif command == "report":
            code = cmd_report(cfg)
        elif command == "trend":
            code = cmd_trend(cfg)
        else:
            raise ConfigError(f"Unknown command: {command}")

        sys.exit(code)
    except SystemExit:
        raise
    except BrokenPipeError:
        # Common when users pipe to `head` or similar tools.
        sys.exit(0)
    except Exception as e:
        # Map to consistent exit code and log
        setup_logging(LogConfig())
        LOG.error("Execution failed", extra={"error": str(e)})
        sys.exit(as_exit_code(e))


if __name__ == "__main__":
    main()
