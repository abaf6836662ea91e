from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    CONFIG_ERROR = 2
    INPUT_ERROR = 3
    EXPORT_ERROR = 4
    RUNTIME_ERROR = 5


class PMReportError(Exception):
    """Base error for the PM report pipeline."""


class ConfigError(PMReportError):
    """Raised for configuration or argument issues."""


class InputError(PMReportError):
    """Raised when a session bundle cannot be loaded or is structurally invalid."""


class ExportError(PMReportError):
    """Raised when writing report artifacts fails."""


class HistoryError(PMReportError):
    """Raised when metric snapshots cannot be read or compared."""


def as_exit_code(exc: BaseException) -> int:
    if isinstance(exc, (ConfigError, ValueError)):
        return int(ExitCode.CONFIG_ERROR)
    if isinstance(exc, InputError):
        return int(ExitCode.INPUT_ERROR)
    if isinstance(exc, ExportError):
        return int(ExitCode.EXPORT_ERROR)
    if isinstance(exc, (HistoryError, PMReportError)):
        return int(ExitCode.RUNTIME_ERROR)
    return 1
