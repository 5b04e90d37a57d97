"""A single cached config namespace.

A namespace is bound to one backend and one store identifier. It fetches
lazily on first access, then serves its cached snapshot, refreshing it in the
background once it is older than the refresh interval (stale-while-revalidate).

All of this runs on one asyncio event loop. The cache read, staleness check
and in-flight check-and-set never await, so they are atomic with respect to
other tasks; the only suspension point is the backend fetch itself.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional, Protocol, TypeVar

from .backends.base import ConfigBackend
from .errors import BackendError, ConfigKeyNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Schema(Protocol[T_co]):
    """Anything that validates or transforms a snapshot."""

    def parse(self, data: Any) -> T_co:
        ...


RefreshErrorHandler = Callable[["ConfigNamespace", Exception], None]


class ConfigNamespace:
    """Lazily fetched, cached and background-refreshed config snapshot.

    Args:
        backend: Backend to fetch from
        store_id: Identifier passed to backend.fetch()
        refresh_interval_ms: Snapshot lifetime. None caches forever; 0 makes
            every access after the first trigger a background refresh.
        name: Namespace name used in error messages. Defaults to store_id.
        on_refresh_error: Called with (namespace, exception) when a
            background refresh fails. Failures are otherwise only logged.
        clock: Monotonic clock in seconds
    """

    def __init__(
        self,
        backend: ConfigBackend,
        store_id: str,
        refresh_interval_ms: Optional[int] = None,
        *,
        name: Optional[str] = None,
        on_refresh_error: Optional[RefreshErrorHandler] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._backend = backend
        self._store_id = store_id
        self.refresh_interval_ms = refresh_interval_ms
        self.name = name or store_id
        self.on_refresh_error = on_refresh_error
        self._clock = clock

        self._values: Optional[dict[str, str]] = None
        self._last_fetched_at: Optional[float] = None
        self._inflight: Optional[asyncio.Task] = None

    @property
    def backend(self) -> ConfigBackend:
        return self._backend

    @property
    def store_id(self) -> str:
        return self._store_id

    @property
    def last_fetched_at(self) -> Optional[float]:
        """Clock reading at the last successful fetch, or None."""
        return self._last_fetched_at

    @property
    def refresh_in_flight(self) -> bool:
        return self._inflight is not None

    async def get(self, key: str) -> Optional[str]:
        values = await self._ensure_loaded()
        return values.get(key)

    async def get_or_throw(self, key: str) -> str:
        """Get a value, raising ConfigKeyNotFound when it is absent."""
        value = await self.get(key)
        if value is None:
            raise ConfigKeyNotFound(key, self.name)
        return value

    async def get_all(self) -> dict[str, str]:
        values = await self._ensure_loaded()
        return dict(values)

    async def parse(self, schema: Schema[T]) -> T:
        """Pass the snapshot through schema.parse(); its errors propagate."""
        return schema.parse(await self.get_all())

    async def wait_for_refresh(self) -> None:
        """Wait for the fetch currently in flight, if any. Never raises."""
        task = self._inflight
        if task is not None:
            await asyncio.wait({task})

    def is_stale(self) -> bool:
        if self._values is None or self.refresh_interval_ms is None:
            return False
        age_ms = (self._clock() - self._last_fetched_at) * 1000
        return age_ms >= self.refresh_interval_ms

    async def _ensure_loaded(self) -> dict[str, str]:
        if self._values is None:
            task = self._inflight
            if task is None:
                logger.debug(f"Namespace {self.name}: first fetch of {self._store_id!r}")
                task = self._start_fetch(background=False)
            # Shield so a cancelled caller does not cancel the shared fetch
            await asyncio.shield(task)
            return self._values

        if self.is_stale() and self._inflight is None:
            age_ms = (self._clock() - self._last_fetched_at) * 1000
            logger.debug(
                f"Namespace {self.name}: stale (age={age_ms:.0f}ms), triggering background refresh"
            )
            self._start_fetch(background=True)

        return self._values

    def _start_fetch(self, background: bool) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._fetch(background))
        task.add_done_callback(_consume_exception)
        self._inflight = task
        return task

    async def _fetch(self, background: bool) -> None:
        try:
            values = await self._backend.fetch(self._store_id)
        except Exception as e:
            if not background:
                raise
            self._handle_refresh_error(e)
            return
        finally:
            self._inflight = None

        self._values = dict(values)
        self._last_fetched_at = self._clock()
        logger.debug(f"Namespace {self.name}: {len(self._values)} keys loaded")

    def _handle_refresh_error(self, exc: Exception) -> None:
        if isinstance(exc, BackendError):
            logger.debug(f"Namespace {self.name}: refresh failed ({exc}), serving stale values")
        else:
            logger.exception(f"Namespace {self.name}: unexpected refresh failure, serving stale values")

        if self.on_refresh_error is not None:
            try:
                self.on_refresh_error(self, exc)
            except Exception:
                logger.exception(f"Namespace {self.name}: on_refresh_error handler failed")

    def __repr__(self) -> str:
        return (
            f"ConfigNamespace(name={self.name!r}, store_id={self._store_id!r}, "
            f"backend={self._backend!r}, refresh_interval_ms={self.refresh_interval_ms})"
        )


def _consume_exception(task: asyncio.Task) -> None:
    # Initial-fetch errors reach their awaiters; this only stops asyncio from
    # warning when every awaiter was cancelled first.
    if not task.cancelled():
        task.exception()
