"""Process startup: build the base evaluation context from settings."""

import asyncio

import prometheus_client
import structlog

from feature_gate.config.settings import (
    FeatureGateSettings,
    KillswitchSettings,
    get_settings,
)
from feature_gate.core.context import EvaluationContext
from feature_gate.domain.models import KillswitchBackend
from feature_gate.killswitch import (
    BlobKillswitch,
    BlobStore,
    ErrorHandler,
    FileKillswitch,
    PollingKillswitch,
)
from feature_gate.observability.logging import setup_logging
from feature_gate.observability.metrics import setup_metrics

logger = structlog.get_logger()


def configure_observability(settings: FeatureGateSettings) -> None:
    """Setup logging and, when enabled, metrics on the default registry."""
    obs = settings.observability
    setup_logging(level=obs.log_level, format_type=obs.log_format, log_file=obs.log_file)
    if obs.metrics_enabled:
        setup_metrics(prometheus_client.REGISTRY)


def create_killswitch(
    settings: KillswitchSettings,
    blob_store: BlobStore | None = None,
    error_handler: ErrorHandler | None = None,
) -> PollingKillswitch | None:
    """Create the configured killswitch without starting it."""
    if settings.backend == KillswitchBackend.NONE:
        return None

    if settings.backend == KillswitchBackend.FILE:
        assert settings.path is not None
        return FileKillswitch(
            settings.path,
            settings.poll_interval,
            jitter=settings.jitter,
            error_handler=error_handler,
        )

    if blob_store is None:
        raise ValueError("Blob killswitch requires a blob store")
    return BlobKillswitch(
        blob_store,
        url=settings.url,
        interval=settings.poll_interval,
        jitter=settings.jitter,
        error_handler=error_handler,
    )


async def build_base_context(
    settings: FeatureGateSettings | None = None,
    blob_store: BlobStore | None = None,
    stop_event: asyncio.Event | None = None,
    error_handler: ErrorHandler | None = None,
) -> tuple[EvaluationContext, PollingKillswitch | None]:
    """Build the process-level context.

    Applies configured overrides and starts the configured killswitch. The
    returned killswitch, if any, must be stopped on shutdown.

    Raises:
        KillswitchFetchError: If the killswitch source cannot be read at startup
    """
    settings = settings or get_settings()
    ctx = EvaluationContext.background()

    if settings.overrides:
        ctx = ctx.with_override_string(settings.override_prefix, settings.overrides)
    if settings.global_override is not None:
        ctx = ctx.with_global_override(settings.global_override)

    killswitch = create_killswitch(settings.killswitch, blob_store, error_handler)
    if killswitch is not None:
        await killswitch.start(stop_event)
        ctx = ctx.with_killswitch(killswitch)

    logger.info(
        "Feature gate context ready",
        environment=settings.environment.value,
        killswitch=killswitch.source if killswitch else None,
    )
    return ctx, killswitch
