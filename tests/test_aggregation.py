import asyncio
import random

import pytest

from advisor.aggregation import AggregationJob, JobState, authorize
from advisor.biometrics import READ_TYPES, BiometricSampleResult, QuantityKind
from advisor.errors import AuthorizationDenied, DuplicateCompletionError
from advisor.health_store import InMemoryHealthStore

KINDS = [
    QuantityKind.HEIGHT,
    QuantityKind.BODY_MASS,
    QuantityKind.STEP_COUNT,
    QuantityKind.HEART_RATE,
    QuantityKind.DISTANCE_WALKING_RUNNING,
]


class GatedStore(InMemoryHealthStore):
    """Each fetch blocks until its gate is opened by the test."""

    def __init__(self, samples, gates):
        super().__init__(samples=samples)
        self.gates = gates

    async def most_recent_sample(self, request):
        await self.gates[request.kind].wait()
        return await super().most_recent_sample(request)


class HangingStore(InMemoryHealthStore):
    async def most_recent_sample(self, request):
        if request.kind == QuantityKind.HEART_RATE:
            await asyncio.sleep(60)
        return await super().most_recent_sample(request)


async def _until(predicate):
    while not predicate():
        await asyncio.sleep(0)


def test_authorize_requests_all_read_types_once():
    store = InMemoryHealthStore()
    asyncio.run(authorize(store))
    assert store.authorization_requests == [READ_TYPES]


def test_authorize_denied():
    store = InMemoryHealthStore(authorized=False)
    with pytest.raises(AuthorizationDenied):
        asyncio.run(authorize(store))
    assert store.fetched == []


def test_authorize_error_counts_as_denied():
    class BrokenStore(InMemoryHealthStore):
        async def request_authorization(self, types):
            raise OSError("store offline")

    with pytest.raises(AuthorizationDenied, match="store offline"):
        asyncio.run(authorize(BrokenStore()))


def test_job_with_no_kinds_joins_immediately():
    job = AggregationJob(InMemoryHealthStore(), [])
    assert asyncio.run(job.run()) == {}
    assert job.state is JobState.JOINED
    assert job.pending == 0


@pytest.mark.parametrize("seed", range(6))
def test_join_waits_for_every_fetch_in_any_order(seed):
    values = {kind: float(i + 1) for i, kind in enumerate(KINDS)}
    order = list(KINDS)
    random.Random(seed).shuffle(order)

    async def scenario():
        gates = {kind: asyncio.Event() for kind in KINDS}
        job = AggregationJob(GatedStore(values, gates), KINDS, timeout=5)
        task = asyncio.ensure_future(job.run())
        await asyncio.sleep(0)

        for released, kind in enumerate(order):
            assert not task.done()
            assert job.state is JobState.PENDING
            assert job.pending == len(KINDS) - released
            gates[kind].set()
            await asyncio.wait_for(_until(lambda: kind in job.results), 1)

        results = await task
        return job, results

    job, results = asyncio.run(scenario())

    assert job.state is JobState.JOINED
    assert job.pending == 0
    assert set(results) == set(KINDS)
    for kind in KINDS:
        assert results[kind] == BiometricSampleResult.of(kind, values[kind])


def test_missing_and_failing_fetches_do_not_block_the_others():
    store = InMemoryHealthStore(
        samples={QuantityKind.HEIGHT: 1.7, QuantityKind.BODY_MASS: 65.0},
        errors={QuantityKind.STEP_COUNT: OSError("sensor offline")},
    )
    results = asyncio.run(AggregationJob(store, KINDS).run())

    assert results[QuantityKind.HEIGHT].value == 1.7
    assert results[QuantityKind.BODY_MASS].value == 65.0
    assert not results[QuantityKind.STEP_COUNT].available
    assert "sensor offline" in results[QuantityKind.STEP_COUNT].reason
    assert results[QuantityKind.HEART_RATE].reason == "no data available"
    assert sorted(store.fetched) == sorted(KINDS)


def test_hung_fetch_times_out_as_absent():
    store = HangingStore(samples={kind: 1.0 for kind in KINDS})
    results = asyncio.run(AggregationJob(store, KINDS, timeout=0.05).run())

    assert results[QuantityKind.HEART_RATE] == BiometricSampleResult.absent(
        QuantityKind.HEART_RATE, "timed out"
    )
    assert all(results[k].available for k in KINDS if k != QuantityKind.HEART_RATE)


def test_job_runs_only_once():
    job = AggregationJob(InMemoryHealthStore(), KINDS)
    asyncio.run(job.run())
    with pytest.raises(RuntimeError, match="joined"):
        asyncio.run(job.run())


def test_recording_a_kind_twice_is_fatal():
    job = AggregationJob(InMemoryHealthStore(), [QuantityKind.HEIGHT])
    job._record(BiometricSampleResult.of(QuantityKind.HEIGHT, 1.8))
    with pytest.raises(DuplicateCompletionError):
        job._record(BiometricSampleResult.of(QuantityKind.HEIGHT, 1.9))


def test_duplicate_kinds_are_fetched_once():
    store = InMemoryHealthStore(samples={QuantityKind.HEIGHT: 1.8})
    job = AggregationJob(store, [QuantityKind.HEIGHT, QuantityKind.HEIGHT])
    results = asyncio.run(job.run())
    assert store.fetched == [QuantityKind.HEIGHT]
    assert list(results) == [QuantityKind.HEIGHT]
