# advisor/aggregation.py
"""
Authorization guard and the fan-out / join over biometric fetches.

authorize() must succeed before an AggregationJob is created. The job
starts one task per quantity kind, waits for all of them, and returns the
results keyed by kind. A fetch that fails, finds nothing, or times out
still reports back, as an absent result, so the join always completes.
"""

import asyncio
import enum
import logging
from typing import Dict, Iterable, Optional

from . import config
from .biometrics import READ_TYPES, BiometricSampleRequest, BiometricSampleResult, DataType, QuantityKind
from .errors import AuthorizationDenied, DuplicateCompletionError
from .health_store import HealthStore

logger = logging.getLogger(__name__)


async def authorize(store: HealthStore, types: Iterable[DataType] = READ_TYPES) -> None:
    """Request read access once; raise AuthorizationDenied unless it is granted."""
    try:
        granted = await store.request_authorization(frozenset(types))
    except Exception as e:
        logger.warning("Health data authorization failed: %r", e)
        raise AuthorizationDenied(f"Authorization request failed: {e}") from e

    if not granted:
        logger.warning("Health data authorization denied")
        raise AuthorizationDenied()


class JobState(enum.Enum):
    PENDING = "pending"
    JOINED = "joined"


class AggregationJob:
    """One round of 'fetch every required sample' for a single prediction."""

    def __init__(
        self,
        store: HealthStore,
        kinds: Iterable[QuantityKind],
        timeout: Optional[float] = None,
    ):
        self.store = store
        self.requests = [BiometricSampleRequest.for_kind(k) for k in dict.fromkeys(kinds)]
        self.timeout = config.FETCH_TIMEOUT_SECONDS if timeout is None else timeout
        self.state = JobState.PENDING
        self.pending = len(self.requests)
        self.results: Dict[QuantityKind, BiometricSampleResult] = {}
        self._started = False

    async def _fetch(self, request: BiometricSampleRequest) -> BiometricSampleResult:
        try:
            value = await asyncio.wait_for(self.store.most_recent_sample(request), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Fetch for %s timed out after %.1fs", request.kind.value, self.timeout)
            return BiometricSampleResult.absent(request.kind, "timed out")
        except DuplicateCompletionError:
            raise
        except Exception as e:
            logger.warning("Fetch for %s failed: %r", request.kind.value, e)
            return BiometricSampleResult.absent(request.kind, f"fetch failed: {e}")

        if value is None:
            logger.info("No %s samples available", request.kind.value)
            return BiometricSampleResult.absent(request.kind)
        return BiometricSampleResult.of(request.kind, value)

    def _record(self, result: BiometricSampleResult) -> None:
        # runs on the event loop thread only
        if result.kind in self.results:
            raise DuplicateCompletionError(result.kind)
        self.results[result.kind] = result
        self.pending -= 1

    async def _fetch_and_record(self, request: BiometricSampleRequest) -> None:
        self._record(await self._fetch(request))

    async def run(self) -> Dict[QuantityKind, BiometricSampleResult]:
        if self._started:
            raise RuntimeError(f"Aggregation job already {self.state.value}")
        self._started = True

        logger.debug("Dispatching %d biometric fetches", len(self.requests))
        await asyncio.gather(*(self._fetch_and_record(r) for r in self.requests))

        if self.pending != 0:
            raise RuntimeError(f"Join completed with {self.pending} fetches outstanding")
        self.state = JobState.JOINED
        return dict(self.results)
