# advisor/ml_service.py
"""
Load the pre-trained regressors and run predictions.

Each model file is owned by one ModelLoader, loaded lazily on first use
and shared read-only afterwards.

- predict_sleep_quality(vector):  sleep questionnaire features -> quality_of_sleep
- predict_calories(vector):       biometric features -> calories
- predict_recipe_id(vector):      diet difficulty features -> recipe_id
"""

import logging
import threading
from pathlib import Path
from typing import Optional

import joblib
import numpy as np

from . import config
from .features import FeatureVector

logger = logging.getLogger(__name__)


class ModelLoader:
    def __init__(self, name: str, path: Path):
        self.name = name
        self.path = Path(path)
        self._model = None
        self._lock = threading.Lock()

    def get_model(self):
        """Load from disk on first call; raises FileNotFoundError if the artifact is missing."""
        if self._model is None:
            with self._lock:
                if self._model is None:
                    if not self.path.exists():
                        raise FileNotFoundError(f"Model file not found at: {self.path}")
                    self._model = joblib.load(self.path)
                    logger.info("Loaded %s model from %s", self.name, self.path)
        return self._model

    def predict(self, vector: FeatureVector) -> float:
        model = self.get_model()

        # models fitted on a DataFrame remember their columns; they must match ours
        expected = getattr(model, "feature_names_in_", None)
        if expected is not None and list(expected) != list(vector.schema.columns):
            raise ValueError(
                f"{self.name} model expects columns {list(expected)}, "
                f"schema {vector.schema.name} v{vector.schema.version} has {list(vector.schema.columns)}"
            )

        X = vector.to_frame()
        preds = np.asarray(model.predict(X)).ravel()
        if preds.size != 1:
            raise ValueError(f"{self.name} model returned {preds.size} outputs, expected 1")
        return float(preds[0])


_loaders = {}
_loaders_lock = threading.Lock()


def get_loader(name: str, path: Optional[Path] = None) -> ModelLoader:
    """Process-wide loader for a named model; the first caller fixes its path."""
    with _loaders_lock:
        loader = _loaders.get(name)
        if loader is None:
            default_paths = {
                "sleep": config.SLEEP_MODEL_PATH,
                "calories": config.CALORIE_MODEL_PATH,
                "diet": config.DIET_MODEL_PATH,
            }
            loader = ModelLoader(name, path or default_paths[name])
            _loaders[name] = loader
        return loader


def reset_loaders() -> None:
    with _loaders_lock:
        _loaders.clear()


def predict_sleep_quality(vector: FeatureVector) -> float:
    return get_loader("sleep").predict(vector)


def predict_calories(vector: FeatureVector) -> float:
    return get_loader("calories").predict(vector)


def predict_recipe_id(vector: FeatureVector) -> int:
    return int(round(get_loader("diet").predict(vector)))
