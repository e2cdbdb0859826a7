"""Sort configuration — closed enums for sort key and partition, parsed once."""

from dataclasses import dataclass
from enum import Enum


class PreconditionError(ValueError):
    """Caller broke a contract: bad geometry, bad buffer length, unknown name."""


class SortKey(Enum):
    RGBA = "rgba"
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    ALPHA = "alpha"
    HUE = "hue"
    SATURATION = "saturation"
    LIGHTNESS = "lightness"


class Partition(Enum):
    GLOBAL = "global"
    LINE = "line"
    COLUMN = "column"


def _parse_enum(enum_cls, value, field: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = [m.value for m in enum_cls]
        raise PreconditionError(
            f"unknown {field} '{value}'. Allowed: {allowed}"
        ) from None


@dataclass(frozen=True)
class SortConfiguration:
    sort_by: SortKey = SortKey.RGBA
    descending: bool = False
    partition: Partition = Partition.GLOBAL
    little_endian: bool = False

    @classmethod
    def from_params(cls, params: dict) -> "SortConfiguration":
        """Build a configuration from a plain params dict.

        Missing keys fall back to the dataclass defaults. Unknown names for
        ``sort_by`` or ``partition`` raise PreconditionError instead of being
        coerced.
        """
        return cls(
            sort_by=_parse_enum(SortKey, params.get("sort_by", "rgba"), "sort_by"),
            descending=bool(params.get("descending", False)),
            partition=_parse_enum(
                Partition, params.get("partition", "global"), "partition"
            ),
            little_endian=bool(params.get("little_endian", False)),
        )

    def to_params(self) -> dict:
        return {
            "sort_by": self.sort_by.value,
            "descending": self.descending,
            "partition": self.partition.value,
            "little_endian": self.little_endian,
        }
