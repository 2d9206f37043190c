# advisor/features.py
"""
Feature schemas for the three models and the code that fills them.

- assemble_features(...):          biometric samples -> calorie model input
- answers_to_sleep_features(...):  questionnaire answers -> sleep model input
- recipe_features(...):            diet difficulty -> diet model input

A FeatureVector is all-or-nothing: it cannot be built with a missing or
non-finite value, so nothing half-filled ever reaches a model.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

import pandas as pd

from . import config
from .biometrics import BiologicalSex, BiometricSampleResult, QuantityKind
from .errors import IncompleteFeatureVector, InputParseFailure


@dataclass(frozen=True)
class FeatureSchema:
    name: str
    version: int
    columns: Tuple[str, ...]
    output: str

    def required_kinds(self) -> List[QuantityKind]:
        kinds = []
        for col in self.columns:
            kind = QUANTITY_COLUMNS.get(col)
            if kind is not None and kind not in kinds:
                kinds.append(kind)
        for left, right in (DERIVED_COLUMNS.get(c) for c in self.columns if c in DERIVED_COLUMNS):
            for kind in (QUANTITY_COLUMNS[left], QUANTITY_COLUMNS[right]):
                if kind not in kinds:
                    kinds.append(kind)
        return kinds


@dataclass(frozen=True)
class FeatureVector:
    schema: FeatureSchema
    values: Tuple[float, ...]

    def __post_init__(self):
        if len(self.values) != len(self.schema.columns):
            raise ValueError(
                f"{self.schema.name} v{self.schema.version} expects "
                f"{len(self.schema.columns)} values, got {len(self.values)}"
            )
        bad = [c for c, v in zip(self.schema.columns, self.values) if not math.isfinite(v)]
        if bad:
            raise IncompleteFeatureVector(bad)

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(self.schema.columns, self.values))

    def to_frame(self) -> pd.DataFrame:
        """One-row DataFrame with the schema's column names, as the models were fitted on."""
        return pd.DataFrame([list(self.values)], columns=list(self.schema.columns))


# calorie model inputs that come straight from a quantity sample
QUANTITY_COLUMNS = {
    "height_m": QuantityKind.HEIGHT,
    "weight_kg": QuantityKind.BODY_MASS,
    "steps": QuantityKind.STEP_COUNT,
    "heart_rate_bpm": QuantityKind.HEART_RATE,
    "active_energy_kcal": QuantityKind.ACTIVE_ENERGY_BURNED,
    "distance_m": QuantityKind.DISTANCE_WALKING_RUNNING,
}

# engineered inputs: column -> (left, right) factors of the product
DERIVED_COLUMNS = {
    "steps_x_distance": ("steps", "distance_m"),
}

CHARACTERISTIC_COLUMNS = ("age", "sex")

CALORIE_SCHEMAS = {
    1: FeatureSchema(
        name="calories",
        version=1,
        columns=(
            "age", "sex", "height_m", "weight_kg", "steps",
            "heart_rate_bpm", "active_energy_kcal", "distance_m",
        ),
        output="calories",
    ),
    2: FeatureSchema(
        name="calories",
        version=2,
        columns=(
            "age", "sex", "height_m", "weight_kg", "steps",
            "heart_rate_bpm", "distance_m", "steps_x_distance",
        ),
        output="calories",
    ),
}

SLEEP_SCHEMA = FeatureSchema(
    name="sleep_quality",
    version=1,
    columns=("sex", "age", "sleep_duration", "activity_level", "stress_level", "sleep_disorder"),
    output="quality_of_sleep",
)

DIET_SCHEMA = FeatureSchema(
    name="diet",
    version=1,
    columns=("minutes", "n_steps", "n_ingredients"),
    output="recipe_id",
)

SEX_CODES = {
    "Male": 0.0,
    "Female": 1.0,
}

# same coding for the health store characteristic; NOT_SET and OTHER have none
BIOLOGICAL_SEX_CODES = {
    BiologicalSex.MALE: SEX_CODES["Male"],
    BiologicalSex.FEMALE: SEX_CODES["Female"],
}


def calorie_schema(version: Optional[int] = None) -> FeatureSchema:
    version = config.CALORIE_SCHEMA_VERSION if version is None else version
    try:
        return CALORIE_SCHEMAS[version]
    except KeyError:
        raise ValueError(
            f"Unknown calorie schema version {version}; known: {sorted(CALORIE_SCHEMAS)}"
        ) from None


def assemble_features(
    schema: FeatureSchema,
    characteristics: Mapping[str, Optional[float]],
    samples: Mapping[QuantityKind, BiometricSampleResult],
) -> FeatureVector:
    """
    Build the model input in schema order from the joined fetch results.

    Raises IncompleteFeatureVector listing every column that could not be
    filled; no default is ever substituted.
    """
    raw: Dict[str, Optional[float]] = {}
    for col in CHARACTERISTIC_COLUMNS:
        raw[col] = characteristics.get(col)
    for col, kind in QUANTITY_COLUMNS.items():
        result = samples.get(kind)
        raw[col] = result.value if result is not None else None

    values: List[float] = []
    missing: List[str] = []
    for col in schema.columns:
        if col in DERIVED_COLUMNS:
            left, right = DERIVED_COLUMNS[col]
            if raw.get(left) is None or raw.get(right) is None:
                missing.append(col)
                continue
            values.append(raw[left] * raw[right])
        elif raw.get(col) is None:
            missing.append(col)
        else:
            values.append(float(raw[col]))

    if missing:
        raise IncompleteFeatureVector(missing)
    return FeatureVector(schema, tuple(values))


def parse_sex(text: str) -> float:
    try:
        return SEX_CODES[text.strip()]
    except KeyError:
        raise InputParseFailure("sex", f"expected one of {', '.join(SEX_CODES)}") from None


def _parse_number(field: str, text: Optional[str]) -> float:
    if text is None or not text.strip():
        raise InputParseFailure(field, "missing")
    try:
        value = float(text)
    except ValueError:
        raise InputParseFailure(field) from None
    if not math.isfinite(value):
        raise InputParseFailure(field)
    return value


def answers_to_sleep_features(answers: Mapping[str, str]) -> FeatureVector:
    """Questionnaire answers (question id -> text) to the sleep model input."""
    sex_text = answers.get("sex")
    if sex_text is None or not sex_text.strip():
        raise InputParseFailure("sex", "missing")

    values = [parse_sex(sex_text)]
    for field in SLEEP_SCHEMA.columns[1:]:
        values.append(_parse_number(field, answers.get(field)))
    return FeatureVector(SLEEP_SCHEMA, tuple(values))


def recipe_features(difficulty: str, levels: Optional[Mapping[str, int]] = None) -> FeatureVector:
    levels = config.DIFFICULTY_LEVELS if levels is None else levels
    key = (difficulty or "").strip().lower()
    if key not in levels:
        raise InputParseFailure("difficulty", f"expected one of {', '.join(levels)}")

    # the same level drives both step and ingredient counts
    level = float(levels[key])
    return FeatureVector(DIET_SCHEMA, (float(config.RECIPE_MINUTES), level, level))
