from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Union

from ..normalize.schema import Reading, VoltageClass
from ..util.formatting import format_number, parse_reading


@dataclass(frozen=True)
class VoltageRange:
    minimum: float
    maximum: float
    current: str  # "DC" | "AC"
    unit: str = "V"

    def contains(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum

    @property
    def label(self) -> str:
        return f"{format_number(self.minimum)}-{format_number(self.maximum)}{self.unit}"


VOLTAGE_RANGES: Mapping[VoltageClass, VoltageRange] = MappingProxyType(
    {
        VoltageClass.VDC_24: VoltageRange(22.8, 25.2, "DC"),
        VoltageClass.VDC_12: VoltageRange(11.4, 12.6, "DC"),
        VoltageClass.LINE_NEUTRAL: VoltageRange(100, 130, "AC"),
        VoltageClass.LINE_GROUND: VoltageRange(100, 130, "AC"),
        VoltageClass.NEUTRAL_GROUND: VoltageRange(0, 1000, "AC", "mV"),
    }
)


@dataclass(frozen=True)
class RangeCheck:
    in_range: bool
    message: str = ""


IN_RANGE = RangeCheck(in_range=True)


def resolve_voltage_class(voltage_class: Union[str, VoltageClass, None]) -> Optional[VoltageClass]:
    if isinstance(voltage_class, VoltageClass):
        return voltage_class
    try:
        return VoltageClass(str(voltage_class or "").strip())
    except ValueError:
        return None


def check_range(value: Reading, voltage_class: Union[str, VoltageClass, None]) -> RangeCheck:
    """
    Check a reading against the nominal band of its voltage class.

    Readings that are blank or not numeric, and classes that are not known,
    are treated as in range: a missing measurement is not a failure.
    """
    number = parse_reading(value)
    if number is None:
        return IN_RANGE
    vclass = resolve_voltage_class(voltage_class)
    if vclass is None:
        return IN_RANGE
    band = VOLTAGE_RANGES[vclass]
    if band.contains(number):
        return IN_RANGE
    return RangeCheck(
        in_range=False,
        message=(
            f"{vclass.value} reading {format_number(number)}{band.unit} "
            f"is outside normal range ({band.label})"
        ),
    )
