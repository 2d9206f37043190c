# advisor/rules.py
"""
Rule-based part of the advisor:
- sleep quality banding + sleep tips
- exercise advice from predicted calories
- diet advice around a suggested recipe
"""

from typing import List, Optional, Tuple

from . import config
from .recipes import Recipe


def classify_sleep(quality: Optional[float]) -> str:
    """
    Band the predicted quality of sleep (roughly a 1-10 scale).
    """
    if quality is None:
        return "Unknown"

    if quality < config.SLEEP_POOR_BELOW:
        return "Poor"
    elif quality < config.SLEEP_FAIR_BELOW:
        return "Fair"
    else:
        return "Good"


def sleep_tips(quality: Optional[float]) -> Tuple[str, List[str]]:
    band = classify_sleep(quality)
    tips: List[str] = []

    if band == "Poor":
        tips.append(
            "Your predicted sleep quality is low. Try keeping the same bedtime and wake-up time every day, including weekends."
        )
        tips.append(
            "Avoid caffeine after mid-afternoon and screens in the last hour before bed."
        )
        tips.append(
            "If poor sleep persists for weeks, consider discussing it with a clinician."
        )
    elif band == "Fair":
        tips.append(
            "Your predicted sleep quality is fair. A short wind-down routine (reading, stretching) can help you fall asleep faster."
        )
        tips.append(
            "Keep the bedroom dark, quiet and slightly cool."
        )
    elif band == "Good":
        tips.append(
            "Your predicted sleep quality is good. Keep your current routine."
        )

    return band, tips


def exercise_tips(calories: Optional[float]) -> List[str]:
    if calories is None:
        return []

    if calories < config.EXERCISE_CALORIE_THRESHOLD:
        return ["Exercise 30 minutes a day"]
    return [
        "Do 3 sets of 5 reps using 75% of the maximum weight you can for: "
        "Squats, Deadlift, and Benchpress. Rest 2-3 minutes between sets."
    ]


def diet_tips(recipe: Optional[Recipe]) -> List[str]:
    if recipe is None:
        return []

    tips = [f"Try cooking: {recipe.name}"]
    if recipe.ingredients:
        tips.append("You will need: " + ", ".join(recipe.ingredients))
    return tips
