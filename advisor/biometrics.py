# advisor/biometrics.py
"""
Types describing what is read from the health data store.
"""

import enum
from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Optional, Union


class QuantityKind(str, enum.Enum):
    HEIGHT = "height"
    BODY_MASS = "body_mass"
    STEP_COUNT = "step_count"
    HEART_RATE = "heart_rate"
    ACTIVE_ENERGY_BURNED = "active_energy_burned"
    DISTANCE_WALKING_RUNNING = "distance_walking_running"


class CharacteristicKind(str, enum.Enum):
    BIOLOGICAL_SEX = "biological_sex"
    DATE_OF_BIRTH = "date_of_birth"


class BiologicalSex(str, enum.Enum):
    NOT_SET = "not_set"
    FEMALE = "female"
    MALE = "male"
    OTHER = "other"


DataType = Union[QuantityKind, CharacteristicKind]

# Unit every sample is converted into before it reaches a feature vector.
DEFAULT_UNITS = {
    QuantityKind.HEIGHT: "m",
    QuantityKind.BODY_MASS: "kg",
    QuantityKind.STEP_COUNT: "count",
    QuantityKind.HEART_RATE: "count/min",
    QuantityKind.ACTIVE_ENERGY_BURNED: "kcal",
    QuantityKind.DISTANCE_WALKING_RUNNING: "m",
}

# Everything the advisor asks permission to read, requested in one go.
READ_TYPES: FrozenSet[DataType] = frozenset(
    [CharacteristicKind.BIOLOGICAL_SEX, CharacteristicKind.DATE_OF_BIRTH, *QuantityKind]
)


def parse_data_type(name: str) -> DataType:
    for enum_cls in (QuantityKind, CharacteristicKind):
        try:
            return enum_cls(name)
        except ValueError:
            continue
    raise ValueError(f"Unknown health data type: {name!r}")


@dataclass(frozen=True)
class BiometricSampleRequest:
    kind: QuantityKind
    unit: str

    @classmethod
    def for_kind(cls, kind: QuantityKind) -> "BiometricSampleRequest":
        return cls(kind=kind, unit=DEFAULT_UNITS[kind])


@dataclass(frozen=True)
class SampleQuery:
    """Most-recent-sample query as handed to callback style stores."""

    request: BiometricSampleRequest
    limit: int = 1
    ascending: bool = False


@dataclass(frozen=True)
class BiometricSampleResult:
    kind: QuantityKind
    value: Optional[float] = None
    reason: Optional[str] = None

    def __post_init__(self):
        if (self.value is None) == (self.reason is None):
            raise ValueError("A sample result carries either a value or a reason")

    @classmethod
    def of(cls, kind: QuantityKind, value: float) -> "BiometricSampleResult":
        return cls(kind=kind, value=float(value))

    @classmethod
    def absent(cls, kind: QuantityKind, reason: str = "no data available") -> "BiometricSampleResult":
        return cls(kind=kind, reason=reason)

    @property
    def available(self) -> bool:
        return self.value is not None


def age_on(date_of_birth: date, today: date) -> int:
    """Full years between date_of_birth and today."""
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years
