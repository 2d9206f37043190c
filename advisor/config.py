# advisor/config.py
"""
Runtime settings. Everything can be overridden through environment
variables (or a local .env file).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

DATABASE_URL = os.environ.get("ADVISOR_DATABASE_URL", "sqlite:///./advisor.db")

SLEEP_MODEL_PATH = Path(
    os.environ.get("ADVISOR_SLEEP_MODEL", BASE_DIR / "ml" / "sleep_regressor.joblib")
)
CALORIE_MODEL_PATH = Path(
    os.environ.get("ADVISOR_CALORIE_MODEL", BASE_DIR / "ml" / "calorie_regressor.joblib")
)
DIET_MODEL_PATH = Path(
    os.environ.get("ADVISOR_DIET_MODEL", BASE_DIR / "ml" / "diet_regressor.joblib")
)
RECIPES_PATH = Path(
    os.environ.get("ADVISOR_RECIPES_CSV", BASE_DIR / "data" / "recipes.csv")
)

# seconds to wait for a single biometric fetch before treating it as absent
FETCH_TIMEOUT_SECONDS = float(os.environ.get("ADVISOR_FETCH_TIMEOUT", "10"))

CALORIE_SCHEMA_VERSION = int(os.environ.get("ADVISOR_CALORIE_SCHEMA_VERSION", "2"))

LOG_LEVEL = os.environ.get("ADVISOR_LOG_LEVEL", "INFO").upper()

# recommendation thresholds
SLEEP_POOR_BELOW = 6.0
SLEEP_FAIR_BELOW = 8.0
EXERCISE_CALORIE_THRESHOLD = 10.0

# diet recipe lookup
RECIPE_MINUTES = 30
DIFFICULTY_LEVELS = {
    "easy": 4,
    "medium": 8,
    "hard": 11,
}
