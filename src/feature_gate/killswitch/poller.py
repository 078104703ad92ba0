"""Background polling of an external killswitch source."""

import asyncio
import random
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from types import MappingProxyType
from typing import Any

import structlog

from feature_gate.domain.exceptions import KillswitchError, KillswitchFetchError
from feature_gate.observability.metrics import FeatureMetrics, get_feature_metrics

from .parser import fingerprint, parse_killswitch

logger = structlog.get_logger()

ErrorHandler = Callable[[KillswitchError], None]


class PollingKillswitch(ABC):
    """Killswitch whose state is refreshed from a source on an interval.

    Readers take a lock only for a dictionary lookup; each poll builds a new
    map outside the lock and swaps it in whole. A failed poll keeps the last
    good state.
    """

    def __init__(
        self,
        interval: float,
        jitter: float | None = None,
        error_handler: ErrorHandler | None = None,
        metrics: FeatureMetrics | None = None,
    ):
        """Initialize the poller.

        Args:
            interval: Seconds between polls
            jitter: Random extra delay window in seconds; None means +/-10% of interval
            error_handler: Called with the error of every failed background poll
            metrics: Metrics sink; defaults to the global one
        """
        if interval < 0:
            raise ValueError("interval must not be negative")
        if jitter is not None and jitter < 0:
            raise ValueError("jitter must not be negative")

        self.interval = interval
        self.jitter = jitter
        self.error_handler = error_handler
        self._metrics = metrics
        self._lock = threading.Lock()
        self._state: dict[str, int] = {}
        self._fingerprint: str | None = None
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None
        self._random = random.Random()

    @property
    @abstractmethod
    def source(self) -> str:
        """Human readable source identifier, used in logs and metric labels."""

    @abstractmethod
    async def fetch(self) -> bytes | None:
        """Read the raw killswitch source.

        Returns None when the source is legitimately absent, which is read as
        an empty state.

        Raises:
            KillswitchFetchError: If the source could not be read
        """

    @property
    def metrics(self) -> FeatureMetrics:
        if self._metrics is None:
            return get_feature_metrics()
        return self._metrics

    @property
    def fingerprint(self) -> str | None:
        """Fingerprint of the raw source behind the current state."""
        with self._lock:
            return self._fingerprint

    @property
    def running(self) -> bool:
        """Check if the background loop is alive."""
        return self._task is not None and not self._task.done()

    def get(self, name: str) -> int | None:
        """Return the killswitch level for a feature, or None if not killed."""
        with self._lock:
            return self._state.get(name.lower())

    def enabled(self, name: str) -> bool:
        """Check whether the killswitch is set for a feature."""
        return self.get(name) is not None

    def snapshot(self) -> MappingProxyType[str, int]:
        """Read-only view of the current state."""
        with self._lock:
            return MappingProxyType(self._state)

    def next_interval(self) -> float:
        """Delay before the next poll, with jitter applied."""
        if self.jitter is not None:
            if self.jitter == 0:
                return self.interval
            return self.interval + self._random.uniform(0, self.jitter)

        swing = self.interval / 10
        if swing <= 0:
            return self.interval
        return self.interval + self._random.uniform(-swing, swing)

    async def poll(self) -> bool:
        """Fetch, parse and swap in the source state.

        Returns:
            True if the source content changed since the previous poll

        Raises:
            KillswitchFetchError: If the source could not be read; the current
                state is left untouched
        """
        try:
            raw = await self.fetch()
        except KillswitchError:
            self.metrics.record_killswitch_error(self.source)
            raise
        except Exception as e:
            self.metrics.record_killswitch_error(self.source)
            raise KillswitchFetchError(self.source, str(e)) from e

        if raw is None:
            raw = b""
        state = parse_killswitch(raw)
        digest = fingerprint(raw)

        with self._lock:
            changed = digest != self._fingerprint
            self._state = state
            self._fingerprint = digest

        if changed:
            logger.info(
                "Killswitch state changed",
                source=self.source,
                fingerprint=digest,
                disabled_features=len(state),
            )
        else:
            logger.debug("Killswitch state unchanged", source=self.source)

        self.metrics.set_killswitch_fingerprint(self.source, digest)
        return changed

    async def start(self, stop_event: asyncio.Event | None = None) -> None:
        """Poll once, then keep polling in the background.

        The first poll completes before this returns, so callers never observe
        an empty state that the source does not describe.

        Args:
            stop_event: Shared cancellation signal; a private one is used if omitted

        Raises:
            KillswitchFetchError: If the first poll fails; no loop is started
        """
        if self.running:
            logger.warning("Killswitch polling already started", source=self.source)
            return
        self._task = None

        await self.poll()

        self._stop_event = stop_event or asyncio.Event()
        self._task = asyncio.create_task(self._poll_loop(self._stop_event))
        logger.info(
            "Started killswitch polling", source=self.source, interval=self.interval
        )

    async def stop(self, timeout: float | None = None) -> None:
        """Signal the loop to exit and wait for it.

        Args:
            timeout: Seconds to wait for an in-flight poll before cancelling it
        """
        if self._task is None or self._stop_event is None:
            logger.warning("Killswitch polling not started", source=self.source)
            return

        self._stop_event.set()
        task = self._task

        done, _ = await asyncio.wait({task}, timeout=timeout)
        if not done:
            task.cancel()

        try:
            await task
        except asyncio.CancelledError:
            pass

        self._task = None
        logger.info("Stopped killswitch polling", source=self.source)

    async def __aenter__(self) -> "PollingKillswitch":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()

    async def _poll_loop(self, stop_event: asyncio.Event) -> None:
        """Main polling loop."""
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.next_interval())
                break
            except asyncio.TimeoutError:
                pass

            if not await self._poll_until_stopped(stop_event):
                break

    async def _poll_until_stopped(self, stop_event: asyncio.Event) -> bool:
        """Run one poll, abandoning it if the stop signal fires first.

        Returns:
            False if the poll was cancelled by the stop signal
        """
        poll_task = asyncio.create_task(self.poll())
        stop_task = asyncio.create_task(stop_event.wait())
        try:
            await asyncio.wait(
                {poll_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (poll_task, stop_task):
                if not task.done():
                    task.cancel()

        if poll_task.cancelled() or not poll_task.done():
            try:
                await poll_task
            except asyncio.CancelledError:
                pass
            logger.info("Abandoned in-flight killswitch poll", source=self.source)
            return False

        try:
            poll_task.result()
        except KillswitchError as e:
            self._handle_error(e)
        except Exception as e:
            logger.error(
                "Error in killswitch polling loop", source=self.source, error=str(e)
            )
        return True

    def _handle_error(self, error: KillswitchError) -> None:
        logger.warning(
            "Killswitch poll failed, keeping previous state",
            source=self.source,
            error=str(error),
        )
        if self.error_handler is None:
            return
        try:
            self.error_handler(error)
        except Exception as e:
            logger.error(
                "Killswitch error handler failed", source=self.source, error=str(e)
            )
