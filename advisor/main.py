import datetime as dt
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from sqlalchemy.orm import Session

from . import config, models
from .answer_cache import AnswerCache
from .biometrics import DEFAULT_UNITS, BiologicalSex, QuantityKind, parse_data_type
from .database import Base, engine, get_db, get_session_factory
from .features import calorie_schema
from .health_store import HealthStore, SqlHealthStore
from .ml_service import predict_calories, predict_recipe_id, predict_sleep_quality
from .pipeline import BiometricPipeline, Predictor, SleepPipeline, recommend_recipe
from .questionnaire import Questionnaire
from .recipes import RecipeCatalog
from .rules import diet_tips, exercise_tips, sleep_tips
from .schemas import (
    AnswerInput,
    AnswerResult,
    AuthorizationInput,
    CaloriePredictionResponse,
    DietRecommendationResponse,
    ProfileInput,
    QuestionOut,
    RecipeOut,
    SampleInput,
    SleepPredictionResponse,
)
from .units import UnitMismatchError, convert

logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(title="Wellness Advisor")

# create tables if they do not exist yet
Base.metadata.create_all(bind=engine)

# an unknown ADVISOR_CALORIE_SCHEMA_VERSION stops the app here
CALORIE_SCHEMA = calorie_schema()


@dataclass
class Predictors:
    sleep: Predictor = predict_sleep_quality
    calories: Predictor = predict_calories
    diet: Predictor = predict_recipe_id


def get_predictors() -> Predictors:
    return Predictors()


def get_health_store(session_factory=Depends(get_session_factory)) -> HealthStore:
    return SqlHealthStore(session_factory)


_catalog: Optional[RecipeCatalog] = None


def get_recipe_catalog() -> Optional[RecipeCatalog]:
    """Loaded on first use; without a catalog diet advice has no recipe details."""
    global _catalog
    if _catalog is None:
        try:
            _catalog = RecipeCatalog.from_csv(config.RECIPES_PATH)
        except (FileNotFoundError, ValueError) as e:
            logger.warning("Recipe catalog unavailable: %s", e)
            return None
    return _catalog


def _question_out(questionnaire: Questionnaire) -> QuestionOut:
    question = questionnaire.current_prompt()
    return QuestionOut(
        question_id=question.id if question else None,
        text=question.text if question else None,
        answered=len(questionnaire.answers),
        total=len(questionnaire.questions),
        complete=questionnaire.is_complete(),
    )


@app.get("/api/questionnaire", response_model=QuestionOut)
async def current_question(db: Session = Depends(get_db)):
    """
    The next unanswered question, resumed from cached answers
    """
    return _question_out(Questionnaire(answers=AnswerCache(db).load()))


@app.post("/api/questionnaire/answer", response_model=AnswerResult)
async def submit_answer(payload: AnswerInput, db: Session = Depends(get_db)):
    cache = AnswerCache(db)
    questionnaire = Questionnaire(answers=cache.load())
    question = questionnaire.current_prompt()

    result = questionnaire.submit_answer(payload.text)
    if result.ok:
        cache.save(question.id, questionnaire.answers[question.id])

    return AnswerResult(
        accepted=result.ok,
        reason=result.reason,
        next=_question_out(questionnaire),
    )


@app.post("/api/questionnaire/reset", response_model=QuestionOut)
async def reset_questionnaire(db: Session = Depends(get_db)):
    AnswerCache(db).clear()
    return _question_out(Questionnaire())


@app.post("/api/predict/sleep", response_model=SleepPredictionResponse)
async def predict_sleep(
    db: Session = Depends(get_db),
    predictors: Predictors = Depends(get_predictors),
):
    """
    Run the sleep quality model on the cached questionnaire answers
    """
    outcome = SleepPipeline(predictors.sleep).run(AnswerCache(db).load())
    category, tips = sleep_tips(outcome.prediction)
    return SleepPredictionResponse(
        quality_of_sleep=outcome.prediction,
        category=category,
        tips=tips,
        error=outcome.error.to_dict() if outcome.error else None,
    )


@app.put("/api/profile")
async def update_profile(payload: ProfileInput, db: Session = Depends(get_db)):
    try:
        sex = BiologicalSex(payload.biological_sex.strip().lower())
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown biological sex: {payload.biological_sex}")

    profile = db.query(models.Profile).first()
    if profile is None:
        profile = models.Profile(id=1)
        db.add(profile)
    profile.biological_sex = sex.value
    profile.date_of_birth = payload.date_of_birth
    db.commit()

    return {"biological_sex": sex.value, "date_of_birth": payload.date_of_birth}


@app.post("/api/samples", status_code=201)
async def record_sample(payload: SampleInput, db: Session = Depends(get_db)):
    """
    Store one sample; its unit must be convertible to the kind's standard unit
    """
    try:
        kind = QuantityKind(payload.kind)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown quantity kind: {payload.kind}")

    unit = payload.unit or DEFAULT_UNITS[kind]
    try:
        convert(payload.value, unit, DEFAULT_UNITS[kind])
    except UnitMismatchError as e:
        raise HTTPException(status_code=422, detail=str(e))

    sample = models.Sample(
        kind=kind.value,
        value=payload.value,
        unit=unit,
        start_date=payload.start_date or dt.datetime.now(),
    )
    db.add(sample)
    db.commit()
    db.refresh(sample)

    return {"id": sample.id, "kind": kind.value, "value": sample.value, "unit": unit}


@app.put("/api/authorization")
async def update_authorization(payload: AuthorizationInput, db: Session = Depends(get_db)):
    try:
        types = [parse_data_type(name) for name in payload.data_types]
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    for data_type in types:
        grant = db.get(models.AuthorizationGrant, data_type.value)
        if grant is None:
            db.add(models.AuthorizationGrant(data_type=data_type.value, granted=payload.granted))
        else:
            grant.granted = payload.granted
    db.commit()

    return {"data_types": [t.value for t in types], "granted": payload.granted}


@app.post("/api/predict/calories", response_model=CaloriePredictionResponse)
async def predict_calories_endpoint(
    store: HealthStore = Depends(get_health_store),
    predictors: Predictors = Depends(get_predictors),
):
    """
    Pull the latest biometric samples and run the calorie model
    """
    outcome = await BiometricPipeline(store, predictors.calories, schema=CALORIE_SCHEMA).run()
    return CaloriePredictionResponse(
        calories=outcome.prediction,
        schema_version=CALORIE_SCHEMA.version,
        features=list(outcome.vector.values) if outcome.vector else None,
        tips=exercise_tips(outcome.prediction),
        error=outcome.error.to_dict() if outcome.error else None,
    )


@app.get("/api/recommendations/diet", response_model=DietRecommendationResponse)
async def diet_recommendation(
    difficulty: str = Query("medium"),
    predictors: Predictors = Depends(get_predictors),
    catalog: Optional[RecipeCatalog] = Depends(get_recipe_catalog),
):
    outcome, recipe = recommend_recipe(difficulty, predictors.diet, catalog)
    return DietRecommendationResponse(
        difficulty=difficulty,
        recipe_id=int(outcome.prediction) if outcome.prediction is not None else None,
        recipe=RecipeOut(id=recipe.id, name=recipe.name, ingredients=recipe.ingredients) if recipe else None,
        tips=diet_tips(recipe),
        error=outcome.error.to_dict() if outcome.error else None,
    )
