import os

# keep the app's import-time create_all away from the working directory
os.environ.setdefault("ADVISOR_DATABASE_URL", "sqlite://")

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from advisor import models  # noqa: F401  (registers the tables)
from advisor.biometrics import BiologicalSex, QuantityKind
from advisor.database import Base
from advisor.health_store import InMemoryHealthStore


class RecordingPredictor:
    """Stands in for a model: remembers every vector it was called with."""

    def __init__(self, result=1.0, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def __call__(self, vector):
        self.calls.append(vector)
        if self.error is not None:
            raise self.error
        return self.result


BIOMETRICS = {
    QuantityKind.HEIGHT: 1.8,
    QuantityKind.BODY_MASS: 80.0,
    QuantityKind.STEP_COUNT: 10000.0,
    QuantityKind.HEART_RATE: 70.0,
    QuantityKind.DISTANCE_WALKING_RUNNING: 8000.0,
}

BIRTHDAY = date(1990, 6, 15)
TODAY = date(2020, 6, 15)


@pytest.fixture
def make_predictor():
    return RecordingPredictor


@pytest.fixture
def make_store():
    def factory(samples=None, **kwargs):
        kwargs.setdefault("sex", BiologicalSex.FEMALE)
        kwargs.setdefault("date_of_birth", BIRTHDAY)
        return InMemoryHealthStore(samples=BIOMETRICS if samples is None else samples, **kwargs)

    return factory


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
