"""Killswitch backed by generic blob storage."""

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from feature_gate.domain.exceptions import KillswitchFetchError
from feature_gate.observability.metrics import FeatureMetrics

from .poller import ErrorHandler, PollingKillswitch


@runtime_checkable
class BlobStore(Protocol):
    """Generic blob store, easily implemented with S3, Azure blob storage, etc."""

    async def get_blob_data(self, url: str) -> bytes:
        """Return the blob contents at ``url``."""
        ...


class BlobStoreFn:
    """Implements BlobStore with a plain coroutine function."""

    def __init__(self, fn: Callable[[str], Awaitable[bytes]]):
        self._fn = fn

    async def get_blob_data(self, url: str) -> bytes:
        return await self._fn(url)


class BlobKillswitch(PollingKillswitch):
    """Polls a blob containing one killswitch record per line.

    Every store error, including a missing blob, is a poll failure.
    """

    def __init__(
        self,
        store: BlobStore,
        url: str = "",
        interval: float = 30.0,
        jitter: float | None = 5.0,
        error_handler: ErrorHandler | None = None,
        metrics: FeatureMetrics | None = None,
    ):
        super().__init__(interval, jitter, error_handler, metrics)
        self.store = store
        self.url = url

    @property
    def source(self) -> str:
        return f"blob:{self.url}"

    async def fetch(self) -> bytes:
        try:
            data = await self.store.get_blob_data(self.url)
        except Exception as e:
            raise KillswitchFetchError(self.source, f"getting blob data: {e}") from e
        if isinstance(data, str):
            return data.encode("utf-8")
        return bytes(data)
