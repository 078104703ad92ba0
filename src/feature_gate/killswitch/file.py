"""File-backed killswitch."""

import asyncio
from pathlib import Path

import structlog

from feature_gate.core.context import EvaluationContext
from feature_gate.domain.exceptions import KillswitchFetchError
from feature_gate.observability.metrics import FeatureMetrics

from .poller import ErrorHandler, PollingKillswitch

logger = structlog.get_logger()


class FileKillswitch(PollingKillswitch):
    """Periodically reads a local killswitch file.

    The file doesn't need to exist until it's needed: a missing file means
    nothing is disabled. Any other read error is a poll failure.
    """

    def __init__(
        self,
        path: str | Path,
        interval: float,
        jitter: float | None = None,
        error_handler: ErrorHandler | None = None,
        metrics: FeatureMetrics | None = None,
    ):
        super().__init__(interval, jitter, error_handler, metrics)
        self.path = Path(path)

    @property
    def source(self) -> str:
        return f"file:{self.path}"

    async def fetch(self) -> bytes | None:
        try:
            return await asyncio.to_thread(self.path.read_bytes)
        except FileNotFoundError:
            logger.debug("Killswitch file not present", path=str(self.path))
            return None
        except OSError as e:
            raise KillswitchFetchError(self.source, str(e)) from e


async def attach_file_killswitch(
    ctx: EvaluationContext,
    path: str | Path,
    poll_interval: float,
    stop_event: asyncio.Event | None = None,
    error_handler: ErrorHandler | None = None,
) -> tuple[EvaluationContext, FileKillswitch]:
    """Start polling a killswitch file and attach it to a context.

    Blocks until the file has been read once (when it exists) to avoid missing
    state at startup. The returned killswitch must be stopped on shutdown.
    """
    killswitch = FileKillswitch(path, poll_interval, error_handler=error_handler)
    await killswitch.start(stop_event)
    return ctx.with_killswitch(killswitch), killswitch
