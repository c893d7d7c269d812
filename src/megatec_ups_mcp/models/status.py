"""UPS status record model."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar


@dataclass(frozen=True)
class UPSStatus:
    """Electrical and thermal snapshot reported by the UPS status line.

    Fields appear in the order the device sends them.
    """

    input_voltage: float
    input_fault_voltage: float
    output_voltage: float
    output_current: float  # percent of rated load
    input_frequency: float
    battery_voltage: float
    temperature: float

    FIELD_COUNT: ClassVar[int] = 7

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_values(cls, values: list[float]) -> UPSStatus:
        """Build a record from exactly seven values in wire order."""
        if len(values) != cls.FIELD_COUNT:
            raise ValueError(
                f"Status needs {cls.FIELD_COUNT} values, got {len(values)}"
            )
        return cls(*values)
