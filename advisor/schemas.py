# advisor/schemas.py
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field


class ErrorOut(BaseModel):
    code: str
    message: str


class QuestionOut(BaseModel):
    """
    Current state of the questionnaire
    """
    question_id: Optional[str] = None
    text: Optional[str] = None
    answered: int
    total: int
    complete: bool


class AnswerInput(BaseModel):
    text: str = Field(..., description="Answer to the current question")


class AnswerResult(BaseModel):
    accepted: bool
    reason: Optional[str] = None
    next: QuestionOut


class ProfileInput(BaseModel):
    biological_sex: str = Field(..., description="male / female / other / not_set")
    date_of_birth: Optional[dt.date] = None


class SampleInput(BaseModel):
    """
    One biometric sample for the local health store
    """
    kind: str = Field(..., description="height / body_mass / step_count / heart_rate / ...")
    value: float = Field(..., ge=0)
    unit: Optional[str] = Field(None, description="Defaults to the kind's standard unit")
    start_date: Optional[dt.datetime] = None


class AuthorizationInput(BaseModel):
    data_types: List[str]
    granted: bool = True


class SleepPredictionResponse(BaseModel):
    quality_of_sleep: Optional[float] = None
    category: str = "Unknown"
    tips: List[str] = []
    error: Optional[ErrorOut] = None


class CaloriePredictionResponse(BaseModel):
    calories: Optional[float] = None
    schema_version: int
    features: Optional[List[float]] = None
    tips: List[str] = []
    error: Optional[ErrorOut] = None


class RecipeOut(BaseModel):
    id: int
    name: str
    ingredients: List[str]


class DietRecommendationResponse(BaseModel):
    difficulty: str
    recipe_id: Optional[int] = None
    recipe: Optional[RecipeOut] = None
    tips: List[str] = []
    error: Optional[ErrorOut] = None
