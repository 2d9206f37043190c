# advisor/health_store.py
"""
Health data stores the biometric pipeline can read from.

- HealthStore:          the async interface the pipeline talks to
- InMemoryHealthStore:  dict backed, for tests and demos
- SqlHealthStore:       reads samples/profile/grants tables through SQLAlchemy
- CallbackHealthStore:  wraps a backend that reports through completion
                        handlers, possibly from its own worker threads
"""

import abc
import asyncio
import logging
import threading
from datetime import date
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from . import config, models
from .biometrics import (
    BiologicalSex,
    BiometricSampleRequest,
    DataType,
    QuantityKind,
    SampleQuery,
    DEFAULT_UNITS,
)
from .errors import DuplicateCompletionError
from .units import convert

logger = logging.getLogger(__name__)


class HealthStore(abc.ABC):

    @abc.abstractmethod
    async def request_authorization(self, types: Iterable[DataType]) -> bool:
        """Ask once for read access to every type; True only if all are granted."""

    @abc.abstractmethod
    async def most_recent_sample(self, request: BiometricSampleRequest) -> Optional[float]:
        """Newest sample of request.kind converted to request.unit, or None."""

    @abc.abstractmethod
    async def biological_sex(self) -> BiologicalSex:
        ...

    @abc.abstractmethod
    async def date_of_birth(self) -> Optional[date]:
        ...


SampleValue = Union[float, Tuple[float, str]]


class InMemoryHealthStore(HealthStore):
    """
    Samples are given per kind either as a bare number (already in the
    kind's default unit) or as a (value, unit) pair.
    """

    def __init__(
        self,
        samples: Optional[Mapping[QuantityKind, SampleValue]] = None,
        sex: BiologicalSex = BiologicalSex.NOT_SET,
        date_of_birth: Optional[date] = None,
        authorized: bool = True,
        errors: Optional[Mapping[QuantityKind, BaseException]] = None,
    ):
        self.samples: Dict[QuantityKind, SampleValue] = dict(samples or {})
        self.sex = sex
        self.dob = date_of_birth
        self.authorized = authorized
        self.errors = dict(errors or {})
        self.authorization_requests: List[frozenset] = []
        self.fetched: List[QuantityKind] = []

    async def request_authorization(self, types):
        self.authorization_requests.append(frozenset(types))
        return self.authorized

    async def most_recent_sample(self, request):
        self.fetched.append(request.kind)
        if request.kind in self.errors:
            raise self.errors[request.kind]

        stored = self.samples.get(request.kind)
        if stored is None:
            return None
        if isinstance(stored, tuple):
            value, unit = stored
        else:
            value, unit = stored, DEFAULT_UNITS[request.kind]
        return convert(value, unit, request.unit)

    async def biological_sex(self):
        return self.sex

    async def date_of_birth(self):
        return self.dob


class SqlHealthStore(HealthStore):
    """
    Backed by the samples / profile / authorization_grants tables.

    Each read opens its own session on a worker thread so several fetches
    can be in flight at once.
    """

    def __init__(self, session_factory: Callable):
        self.session_factory = session_factory

    def _run(self, fn):
        db = self.session_factory()
        try:
            return fn(db)
        finally:
            db.close()

    async def request_authorization(self, types):
        wanted = {t.value for t in types}

        def query(db):
            rows = (
                db.query(models.AuthorizationGrant)
                .filter(models.AuthorizationGrant.data_type.in_(wanted))
                .all()
            )
            granted = {r.data_type for r in rows if r.granted}
            return wanted <= granted

        return await asyncio.to_thread(self._run, query)

    async def most_recent_sample(self, request):
        def query(db):
            return (
                db.query(models.Sample)
                .filter(models.Sample.kind == request.kind.value)
                .order_by(models.Sample.start_date.desc(), models.Sample.id.desc())
                .first()
            )

        row = await asyncio.to_thread(self._run, query)
        if row is None:
            logger.debug("No stored %s samples", request.kind.value)
            return None
        return convert(row.value, row.unit, request.unit)

    async def _profile(self) -> Optional[models.Profile]:
        return await asyncio.to_thread(self._run, lambda db: db.query(models.Profile).first())

    async def biological_sex(self):
        profile = await self._profile()
        if profile is None:
            return BiologicalSex.NOT_SET
        return BiologicalSex(profile.biological_sex)

    async def date_of_birth(self):
        profile = await self._profile()
        return profile.date_of_birth if profile is not None else None


Completion = Callable[..., None]


class CallbackHealthStore(HealthStore):
    """
    Adapter for callback style stores.

    The backend must provide:
        request_authorization(types, completion)   completion(granted, error=None)
        execute_query(query, completion)           completion(value, error=None)
        biological_sex() / date_of_birth()         plain synchronous reads

    Completions may arrive on any thread; results are handed over to the
    event loop that issued the request. A completion fired twice raises
    DuplicateCompletionError in the thread that fired it.
    A completion that arrives after the loop has gone is dropped.
    """

    def __init__(self, backend, timeout: Optional[float] = None):
        self.backend = backend
        # only bounds authorization; sample fetches are bounded by the job
        self.timeout = config.FETCH_TIMEOUT_SECONDS if timeout is None else timeout

    def _completion(self, loop: asyncio.AbstractEventLoop, future: asyncio.Future, key) -> Completion:
        lock = threading.Lock()
        fired = False

        def deliver(value, error):
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(value)

        def completion(value=None, error=None):
            nonlocal fired
            with lock:
                if fired:
                    raise DuplicateCompletionError(key)
                fired = True
            try:
                loop.call_soon_threadsafe(deliver, value, error)
            except RuntimeError:
                # the requesting loop has finished; nobody is waiting any more
                logger.debug("Dropping late completion for %s", key)

        return completion

    async def request_authorization(self, types):
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self.backend.request_authorization(
            frozenset(types), self._completion(loop, future, "authorization")
        )
        return bool(await asyncio.wait_for(future, self.timeout))

    async def most_recent_sample(self, request):
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        query = SampleQuery(request=request)
        self.backend.execute_query(query, self._completion(loop, future, request.kind))
        value = await future
        return None if value is None else float(value)

    async def biological_sex(self):
        return self.backend.biological_sex()

    async def date_of_birth(self):
        return self.backend.date_of_birth()
