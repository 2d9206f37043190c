# advisor/pipeline.py
"""
End-to-end prediction runs.

- BiometricPipeline:  authorize -> fetch all samples -> assemble -> predict calories
- SleepPipeline:      questionnaire answers -> predict quality of sleep
- recommend_recipe:   diet difficulty -> predict recipe id -> catalog lookup

A run never raises an AdvisorError: it is logged and returned in the
outcome next to prediction=None. Nothing is retried.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Mapping, Optional, Tuple

from .aggregation import AggregationJob, authorize
from .biometrics import READ_TYPES, BiologicalSex, age_on
from .errors import AdvisorError, ModelInvocationFailure, SampleUnavailable
from .features import (
    BIOLOGICAL_SEX_CODES,
    FeatureSchema,
    FeatureVector,
    answers_to_sleep_features,
    assemble_features,
    calorie_schema,
    recipe_features,
)
from .health_store import HealthStore
from .recipes import Recipe, RecipeCatalog

logger = logging.getLogger(__name__)

Predictor = Callable[[FeatureVector], float]


@dataclass
class PipelineOutcome:
    prediction: Optional[float] = None
    vector: Optional[FeatureVector] = None
    error: Optional[AdvisorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.prediction is not None


def invoke(model: str, predictor: Predictor, vector: FeatureVector) -> float:
    """Call a black-box predictor; any failure becomes ModelInvocationFailure."""
    try:
        return predictor(vector)
    except Exception as e:
        raise ModelInvocationFailure(model, e) from e


class BiometricPipeline:
    def __init__(
        self,
        store: HealthStore,
        predictor: Predictor,
        schema: Optional[FeatureSchema] = None,
        timeout: Optional[float] = None,
    ):
        self.store = store
        self.predictor = predictor
        self.schema = schema or calorie_schema()
        self.timeout = timeout

    async def _characteristic(self, read, name: str):
        try:
            return await read()
        except Exception as e:
            logger.warning("Reading %s failed: %r", name, e)
            return None

    async def _characteristics(self, today: date) -> Dict[str, Optional[float]]:
        sex, dob = await asyncio.gather(
            self._characteristic(self.store.biological_sex, "biological sex"),
            self._characteristic(self.store.date_of_birth, "date of birth"),
        )
        return {
            "age": float(age_on(dob, today)) if dob is not None else None,
            "sex": BIOLOGICAL_SEX_CODES.get(sex or BiologicalSex.NOT_SET),
        }

    async def collect(self, today: Optional[date] = None) -> FeatureVector:
        """Fetch everything the schema needs and assemble it; raises AdvisorError."""
        today = today or date.today()
        await authorize(self.store, READ_TYPES)

        job = AggregationJob(self.store, self.schema.required_kinds(), timeout=self.timeout)
        samples, characteristics = await asyncio.gather(job.run(), self._characteristics(today))

        for result in samples.values():
            if not result.available:
                logger.warning("%s", SampleUnavailable(result.kind, result.reason))

        return assemble_features(self.schema, characteristics, samples)

    async def run(self, today: Optional[date] = None) -> PipelineOutcome:
        vector = None
        try:
            vector = await self.collect(today)
            calories = invoke(self.schema.name, self.predictor, vector)
        except AdvisorError as e:
            logger.error("Calorie prediction failed: %s", e)
            return PipelineOutcome(vector=vector, error=e)

        logger.info("Predicted %s: %.2f", self.schema.output, calories)
        return PipelineOutcome(prediction=calories, vector=vector)


class SleepPipeline:
    def __init__(self, predictor: Predictor):
        self.predictor = predictor

    def run(self, answers: Mapping[str, str]) -> PipelineOutcome:
        vector = None
        try:
            vector = answers_to_sleep_features(answers)
            quality = invoke(vector.schema.name, self.predictor, vector)
        except AdvisorError as e:
            logger.error("Sleep quality prediction failed: %s", e)
            return PipelineOutcome(vector=vector, error=e)

        logger.info("Predicted quality of sleep: %.2f", quality)
        return PipelineOutcome(prediction=quality, vector=vector)


def recommend_recipe(
    difficulty: str,
    predictor: Predictor,
    catalog: Optional[RecipeCatalog],
) -> Tuple[PipelineOutcome, Optional[Recipe]]:
    vector = None
    try:
        vector = recipe_features(difficulty)
        recipe_id = invoke(vector.schema.name, predictor, vector)
    except AdvisorError as e:
        logger.error("Recipe prediction failed: %s", e)
        return PipelineOutcome(vector=vector, error=e), None

    recipe = catalog.get(int(recipe_id)) if catalog is not None else None
    if recipe is None:
        logger.info("Recipe %s not found in catalog", recipe_id)
    return PipelineOutcome(prediction=recipe_id, vector=vector), recipe
