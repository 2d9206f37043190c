import asyncio
import threading
import time
from datetime import date, datetime

import pytest

from advisor import models
from advisor.aggregation import AggregationJob
from advisor.biometrics import (
    READ_TYPES,
    BiologicalSex,
    BiometricSampleRequest,
    QuantityKind,
)
from advisor.errors import DuplicateCompletionError
from advisor.features import calorie_schema
from advisor.health_store import CallbackHealthStore, InMemoryHealthStore, SqlHealthStore
from advisor.pipeline import BiometricPipeline


def test_in_memory_store_converts_units():
    store = InMemoryHealthStore(samples={QuantityKind.HEIGHT: (180.0, "cm")})
    request = BiometricSampleRequest(QuantityKind.HEIGHT, "cm")
    assert asyncio.run(store.most_recent_sample(request)) == 180.0

    request = BiometricSampleRequest.for_kind(QuantityKind.HEIGHT)
    assert asyncio.run(store.most_recent_sample(request)) == pytest.approx(1.8)


class TestSqlHealthStore:

    def _add(self, db, kind, value, unit, when):
        db.add(models.Sample(kind=kind.value, value=value, unit=unit, start_date=when))
        db.commit()

    def test_newest_sample_wins(self, db, session_factory):
        self._add(db, QuantityKind.BODY_MASS, 82.0, "kg", datetime(2023, 5, 1, 8))
        self._add(db, QuantityKind.BODY_MASS, 176.0, "lb", datetime(2023, 5, 30, 8))
        self._add(db, QuantityKind.BODY_MASS, 90.0, "kg", datetime(2023, 5, 2, 8))

        store = SqlHealthStore(session_factory)
        value = asyncio.run(store.most_recent_sample(BiometricSampleRequest.for_kind(QuantityKind.BODY_MASS)))
        assert value == pytest.approx(176.0 * 0.45359237)

    def test_no_samples(self, session_factory):
        store = SqlHealthStore(session_factory)
        request = BiometricSampleRequest.for_kind(QuantityKind.HEART_RATE)
        assert asyncio.run(store.most_recent_sample(request)) is None

    def test_authorization_requires_every_type(self, db, session_factory):
        store = SqlHealthStore(session_factory)
        assert asyncio.run(store.request_authorization(READ_TYPES)) is False

        for data_type in READ_TYPES:
            db.add(models.AuthorizationGrant(data_type=data_type.value, granted=True))
        db.commit()
        assert asyncio.run(store.request_authorization(READ_TYPES)) is True

        db.get(models.AuthorizationGrant, QuantityKind.HEART_RATE.value).granted = False
        db.commit()
        assert asyncio.run(store.request_authorization(READ_TYPES)) is False

    def test_profile(self, db, session_factory):
        store = SqlHealthStore(session_factory)
        assert asyncio.run(store.biological_sex()) is BiologicalSex.NOT_SET
        assert asyncio.run(store.date_of_birth()) is None

        db.add(models.Profile(id=1, biological_sex="male", date_of_birth=date(1985, 2, 1)))
        db.commit()
        assert asyncio.run(store.biological_sex()) is BiologicalSex.MALE
        assert asyncio.run(store.date_of_birth()) == date(1985, 2, 1)


class ThreadedBackend:
    """Completes every request from a fresh worker thread."""

    def __init__(self, values, granted=True, fire_twice=False, delay=0.0, answers_authorization=True):
        self.values = values
        self.granted = granted
        self.fire_twice = fire_twice
        self.delay = delay
        self.answers_authorization = answers_authorization
        self.queries = []
        self.completion_threads = set()
        self.threads = []
        self.thread_errors = []
        self._lock = threading.Lock()

    def _complete_later(self, completion, value):
        def work():
            time.sleep(self.delay)
            with self._lock:
                self.completion_threads.add(threading.get_ident())
            try:
                completion(value)
            except Exception as e:
                self.thread_errors.append(e)

        thread = threading.Thread(target=work)
        self.threads.append(thread)
        thread.start()

    def request_authorization(self, types, completion):
        if self.answers_authorization:
            self._complete_later(completion, self.granted)

    def execute_query(self, query, completion):
        self.queries.append(query)
        value = self.values.get(query.request.kind)
        if self.fire_twice:
            completion(value)
            completion(value)
            return
        self._complete_later(completion, value)

    def biological_sex(self):
        return BiologicalSex.FEMALE

    def date_of_birth(self):
        return date(1990, 6, 15)


VALUES = {
    QuantityKind.HEIGHT: 1.8,
    QuantityKind.BODY_MASS: 80.0,
    QuantityKind.STEP_COUNT: 10000.0,
    QuantityKind.HEART_RATE: 70.0,
    QuantityKind.DISTANCE_WALKING_RUNNING: 8000.0,
}


def test_callback_store_joins_completions_from_worker_threads(make_predictor):
    backend = ThreadedBackend(VALUES)
    predictor = make_predictor(result=123.0)
    pipeline = BiometricPipeline(CallbackHealthStore(backend), predictor, schema=calorie_schema(2), timeout=5)

    outcome = asyncio.run(pipeline.run(today=date(2020, 6, 15)))

    assert outcome.prediction == 123.0
    assert list(predictor.calls[0].values) == [30, 1, 1.8, 80.0, 10000.0, 70.0, 8000.0, 80000000.0]
    assert threading.get_ident() not in backend.completion_threads
    assert {q.request.kind for q in backend.queries} == set(VALUES)
    assert all(q.limit == 1 and not q.ascending for q in backend.queries)


def test_callback_store_denied(make_predictor):
    backend = ThreadedBackend(VALUES, granted=False)
    predictor = make_predictor()
    outcome = asyncio.run(BiometricPipeline(CallbackHealthStore(backend), predictor).run())

    assert outcome.error.code == "authorization_denied"
    assert backend.queries == []


def test_callback_fired_twice_is_fatal():
    backend = ThreadedBackend(VALUES, fire_twice=True)
    job = AggregationJob(CallbackHealthStore(backend), [QuantityKind.HEIGHT], timeout=5)
    with pytest.raises(DuplicateCompletionError):
        asyncio.run(job.run())


def test_late_completion_after_timeout_is_dropped():
    backend = ThreadedBackend(VALUES, delay=0.3)
    job = AggregationJob(CallbackHealthStore(backend), [QuantityKind.HEIGHT], timeout=0.05)

    results = asyncio.run(job.run())
    for thread in backend.threads:
        thread.join()

    assert not results[QuantityKind.HEIGHT].available
    assert results[QuantityKind.HEIGHT].reason == "timed out"
    assert backend.thread_errors == []


def test_unanswered_authorization_is_denied(make_predictor):
    backend = ThreadedBackend(VALUES, answers_authorization=False)
    predictor = make_predictor()
    store = CallbackHealthStore(backend, timeout=0.05)

    outcome = asyncio.run(BiometricPipeline(store, predictor).run())

    assert outcome.error.code == "authorization_denied"
    assert backend.queries == []
    assert predictor.calls == []
