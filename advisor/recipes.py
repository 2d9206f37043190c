# advisor/recipes.py
"""
Recipe catalog used to turn a predicted recipe_id into something readable.

Expects a CSV in the Food.com RAW_recipes layout; only the `id`, `name`
and `ingredients` columns are used. `ingredients` may be a Python list
literal ("['salt', 'egg']") or a plain comma separated string.
"""

import ast
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"id", "name", "ingredients"}


@dataclass(frozen=True)
class Recipe:
    id: int
    name: str
    ingredients: List[str]


def _parse_ingredients(raw) -> List[str]:
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return []
    text = str(raw).strip()
    if text.startswith("["):
        try:
            return [str(i).strip() for i in ast.literal_eval(text)]
        except (ValueError, SyntaxError):
            logger.warning("Unreadable ingredient list: %s", text[:80])
            return []
    return [part.strip() for part in text.split(",") if part.strip()]


class RecipeCatalog:
    def __init__(self, frame: pd.DataFrame):
        missing = REQUIRED_COLUMNS - set(frame.columns)
        if missing:
            raise ValueError(f"Recipe catalog is missing columns: {sorted(missing)}")
        self._by_id = frame.drop_duplicates(subset="id").set_index("id")

    @classmethod
    def from_csv(cls, path: Path) -> "RecipeCatalog":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Recipe catalog not found at: {path}")
        return cls(pd.read_csv(path, usecols=lambda c: c in REQUIRED_COLUMNS))

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, recipe_id: int) -> Optional[Recipe]:
        if recipe_id not in self._by_id.index:
            return None
        row = self._by_id.loc[recipe_id]
        return Recipe(
            id=int(recipe_id),
            name=str(row["name"]).strip(),
            ingredients=_parse_ingredients(row["ingredients"]),
        )
