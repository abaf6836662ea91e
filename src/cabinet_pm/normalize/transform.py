from __future__ import annotations

import json
import re
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar

import yaml

from ..logging import get_logger
from ..util.errors import InputError
from ..util.formatting import parse_reading
from ..util.time import parse_datetime
from .schema import (
    AssignedController,
    Cabinet,
    ChecklistKey,
    DiagnosticRecord,
    Diode,
    DistributionBlock,
    ErrorType,
    NetworkEquipment,
    NodeMaintenanceRecord,
    PerformanceType,
    PMNotes,
    PowerSupply,
    SessionBundle,
    SessionInfo,
    Status,
)

LOG = get_logger(__name__)

T = TypeVar("T")

_CAMEL_BOUNDARY = re.compile(r"_([a-z0-9])")

# Stored names that differ from the field names used here.
CABINET_ALIASES: Dict[str, Tuple[str, ...]] = {
    "location": ("cabinet_location", "location", "cabinet_name"),
    "inspection_date": ("inspection_date", "cabinet_date", "date"),
    "checklist": ("inspection_checklist", "inspection", "checklist"),
}
VOLTAGE_CLASS_KEYS = ("voltage_class", "voltage_type")
DESCRIPTION_KEYS = ("description", "error_description")
TECHNICIAN_KEYS = ("technician", "username", "user_name")
SESSION_ID_KEYS = ("session_id", "id", "uuid")


def _camel(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(lambda m: m.group(1).upper(), name)


def _get(d: Mapping[str, Any], *keys: str) -> Any:
    """First present value among keys, trying each in snake_case then camelCase."""
    for k in keys:
        if k in d:
            return d[k]
        ck = _camel(k)
        if ck in d:
            return d[ck]
    return None


def _str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def _optional_bool(value: Any) -> Optional[bool]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _bool(value)


def _int(value: Any, *, field: str) -> int:
    if isinstance(value, bool):
        raise InputError(f"Field '{field}' must be an integer")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise InputError(f"Field '{field}' must be an integer, got {value!r}") from e


def _optional_int(value: Any, *, field: str) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _int(value, field=field)


def _reading(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _status(value: Any) -> Optional[Status]:
    text = (_str(value) or "").lower()
    if not text:
        return None
    if text == Status.FAIL.value:
        return Status.FAIL
    if text == Status.PASS.value:
        return Status.PASS
    LOG.warning("Unrecognized status treated as not failed", extra={"status": text})
    return None


def _date(value: Any) -> Optional[date]:
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def _decode_list(value: Any, *, field: str) -> List[Any]:
    """Component collections are persisted as JSON text; accept both forms."""
    if value is None:
        return []
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise InputError(f"Field '{field}' is not valid JSON: {e}") from e
    if not isinstance(value, list):
        raise InputError(f"Field '{field}' must be a list")
    return value


def _decode_mapping(value: Any, *, field: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise InputError(f"Field '{field}' is not valid JSON: {e}") from e
    if not isinstance(value, Mapping):
        raise InputError(f"Field '{field}' must be an object")
    return dict(value)


def _records(items: Iterable[Any], build: Callable[[Mapping[str, Any]], T], *, field: str) -> Tuple[T, ...]:
    out: List[T] = []
    for i, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise InputError(f"{field}[{i}] must be an object")
        out.append(build(item))
    return tuple(out)


# ---------------
# Cabinets
# ---------------
def power_supply_from_record(record: Mapping[str, Any]) -> PowerSupply:
    return PowerSupply(
        voltage_class=_str(_get(record, *VOLTAGE_CLASS_KEYS)) or "",
        line_neutral=_reading(_get(record, "line_neutral", "line_to_neutral")),
        line_ground=_reading(_get(record, "line_ground", "line_to_ground")),
        neutral_ground=_reading(_get(record, "neutral_ground", "neutral_to_ground")),
        dc_reading=_reading(_get(record, "dc_reading")),
        status=_status(_get(record, "status")),
    )


def distribution_block_from_record(record: Mapping[str, Any]) -> DistributionBlock:
    return DistributionBlock(dc_reading=_reading(_get(record, "dc_reading")), status=_status(_get(record, "status")))


def diode_from_record(record: Mapping[str, Any]) -> Diode:
    return Diode(dc_reading=_reading(_get(record, "dc_reading")), status=_status(_get(record, "status")))


def network_equipment_from_record(record: Mapping[str, Any]) -> NetworkEquipment:
    return NetworkEquipment(
        equipment_type=_str(_get(record, "equipment_type")) or "Network Equipment",
        model_number=_str(_get(record, "model_number")),
        status=_status(_get(record, "status")),
    )


def assigned_controller_from_record(record: Mapping[str, Any]) -> AssignedController:
    return AssignedController(
        node_name=_str(_get(record, "node_name", "name")),
        node_type=_str(_get(record, "node_type", "type")),
        model=_str(_get(record, "model")),
        serial=_str(_get(record, "serial")),
    )


def checklist_from_record(raw: Mapping[str, Any]) -> Mapping[ChecklistKey, Status]:
    """
    Build the full 8-item checklist. Missing items default to pass; keys that
    are not checklist items (other than free-text comments) are logged and ignored.
    """
    by_name: Dict[str, ChecklistKey] = {}
    for key in ChecklistKey:
        by_name[key.value] = key
        by_name[_camel(key.value)] = key

    checklist: Dict[ChecklistKey, Status] = {key: Status.PASS for key in ChecklistKey}
    for name, value in raw.items():
        if name == "comments":
            continue
        key = by_name.get(str(name))
        if key is None:
            LOG.warning("Unknown checklist item ignored", extra={"item": str(name)})
            continue
        checklist[key] = Status.FAIL if _status(value) is Status.FAIL else Status.PASS
    return MappingProxyType(checklist)


def cabinet_from_record(record: Mapping[str, Any]) -> Cabinet:
    inspection = _decode_mapping(_get(record, *CABINET_ALIASES["checklist"]), field="inspection")
    comments = _get(record, "comments")
    if comments is None:
        comments = inspection.get("comments")
    return Cabinet(
        location=_str(_get(record, *CABINET_ALIASES["location"])) or "",
        inspection_date=_date(_get(record, *CABINET_ALIASES["inspection_date"])),
        power_supplies=_records(
            _decode_list(_get(record, "power_supplies"), field="power_supplies"),
            power_supply_from_record,
            field="power_supplies",
        ),
        distribution_blocks=_records(
            _decode_list(_get(record, "distribution_blocks"), field="distribution_blocks"),
            distribution_block_from_record,
            field="distribution_blocks",
        ),
        diodes=_records(_decode_list(_get(record, "diodes"), field="diodes"), diode_from_record, field="diodes"),
        network_equipment=_records(
            _decode_list(_get(record, "network_equipment"), field="network_equipment"),
            network_equipment_from_record,
            field="network_equipment",
        ),
        checklist=checklist_from_record(inspection),
        controllers=_records(
            _decode_list(_get(record, "controllers"), field="controllers"),
            assigned_controller_from_record,
            field="controllers",
        ),
        comments=_str(comments),
    )


# ---------------
# Nodes, diagnostics, notes, session
# ---------------
def _performance_type(value: Any) -> Optional[PerformanceType]:
    text = (_str(value) or "").lower()
    if not text:
        return None
    try:
        return PerformanceType(text)
    except ValueError:
        LOG.warning("Unknown performance type ignored", extra={"performance_type": text})
        return None


def node_maintenance_from_record(record: Mapping[str, Any]) -> NodeMaintenanceRecord:
    return NodeMaintenanceRecord(
        node_id=_str(_get(record, "node_id", "id")),
        node_name=_str(_get(record, "node_name", "name")),
        node_type=_str(_get(record, "node_type", "type")),
        model=_str(_get(record, "model")),
        serial=_str(_get(record, "serial")),
        performance_type=_performance_type(_get(record, "performance_type")),
        performance_value=parse_reading(_get(record, "performance_value")),
        hf_updated=_bool(_get(record, "hf_updated")),
        no_errors_checked=_optional_bool(_get(record, "no_errors_checked")),
        hdd_replaced=_bool(_get(record, "hdd_replaced")),
        firmware_updated_checked=_bool(_get(record, "firmware_updated_checked")),
        dv_checked=_bool(_get(record, "dv_checked")),
        os_checked=_bool(_get(record, "os_checked")),
        macafee_checked=_bool(_get(record, "macafee_checked")),
        redundancy_checked=_bool(_get(record, "redundancy_checked")),
        cold_restart_checked=_bool(_get(record, "cold_restart_checked")),
        completed=_bool(_get(record, "completed")),
        notes=_str(_get(record, "notes")),
    )


def _error_type(value: Any) -> ErrorType:
    text = (_str(value) or "").lower()
    try:
        return ErrorType(text)
    except ValueError:
        LOG.warning("Unknown diagnostic error type mapped to other", extra={"error_type": text})
        return ErrorType.OTHER


def diagnostic_from_record(record: Mapping[str, Any]) -> DiagnosticRecord:
    controller = _str(_get(record, "controller_name"))
    if controller is None:
        raise InputError("Diagnostic record is missing 'controller_name'")
    return DiagnosticRecord(
        controller_name=controller,
        card_number=_int(_get(record, "card_number"), field="card_number"),
        channel_number=_optional_int(_get(record, "channel_number"), field="channel_number"),
        error_type=_error_type(_get(record, "error_type")),
        description=_str(_get(record, *DESCRIPTION_KEYS)),
        notes=_str(_get(record, "notes")),
    )


def notes_from_record(record: Optional[Mapping[str, Any]]) -> Optional[PMNotes]:
    if record is None:
        return None
    tasks = _decode_list(_get(record, "common_tasks"), field="common_tasks")
    return PMNotes(
        common_tasks=tuple(str(t) for t in tasks if str(t).strip()),
        additional_work_notes=_str(_get(record, "additional_work_notes")),
        troubleshooting_notes=_str(_get(record, "troubleshooting_notes")),
        recommendations_notes=_str(_get(record, "recommendations_notes")),
    )


def session_from_record(record: Mapping[str, Any]) -> SessionInfo:
    return SessionInfo(
        session_id=_str(_get(record, *SESSION_ID_KEYS)) or "",
        session_name=_str(_get(record, "session_name", "name")) or "PM Session",
        customer_name=_str(_get(record, "customer_name", "customer")),
        session_type=_str(_get(record, "session_type")) or "pm",
        status=_str(_get(record, "status")) or "active",
        technician=_str(_get(record, *TECHNICIAN_KEYS)),
        created_at=parse_datetime(_get(record, "created_at")),
        completed_at=parse_datetime(_get(record, "completed_at")),
    )


def bundle_from_dict(data: Mapping[str, Any]) -> SessionBundle:
    session_raw = _get(data, "session")
    if not isinstance(session_raw, Mapping):
        raise InputError("Session bundle requires a 'session' object")
    notes_raw = _get(data, "notes", "pm_notes")
    if notes_raw is not None and not isinstance(notes_raw, Mapping):
        raise InputError("Field 'notes' must be an object")
    return SessionBundle(
        session=session_from_record(session_raw),
        cabinets=_records(_decode_list(_get(data, "cabinets"), field="cabinets"), cabinet_from_record, field="cabinets"),
        node_maintenance=_records(
            _decode_list(_get(data, "node_maintenance"), field="node_maintenance"),
            node_maintenance_from_record,
            field="node_maintenance",
        ),
        diagnostics=_records(
            _decode_list(_get(data, "diagnostics"), field="diagnostics"),
            diagnostic_from_record,
            field="diagnostics",
        ),
        notes=notes_from_record(notes_raw),
    )


def load_session_bundle(path: Path) -> SessionBundle:
    """
    Load a session bundle from a JSON or YAML file.
    """
    if not path.exists():
        raise InputError(f"Session bundle not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InputError(f"Failed to parse session bundle {path}: {e}") from e
    if not isinstance(data, Mapping):
        raise InputError("Top-level session bundle must be an object")
    bundle = bundle_from_dict(data)
    LOG.info(
        "Session bundle loaded",
        extra={
            "step": "load",
            "phase": "complete",
            "path": str(path),
            "cabinets": len(bundle.cabinets),
            "nodes": len(bundle.node_maintenance),
            "diagnostics": len(bundle.diagnostics),
        },
    )
    return bundle


def stable_json_dumps(obj: Any) -> str:
    """
    Dump JSON with sort_keys=True and separators to ensure stable output.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
