"""Demonstration of feature gating in an HTTP service.

Run with:

    python examples/http_demo.py --killswitch ./killswitch.txt

then request ``/?customer=42``. Writing ``myfeature`` into the killswitch file
disables the feature within about a second.
"""

import argparse
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI, Request

from feature_gate import (
    EvaluationContext,
    FeatureContext,
    attach_file_killswitch,
    get_current_context,
    new_feature,
    with_and,
    with_exact_match,
    with_killswitch_override,
    with_percentage,
)
from feature_gate.observability import LogFormat, LogLevel, setup_logging

REGION_KEY = "region"
CUSTOMER_ID_KEY = "customerID"

my_feature = new_feature(
    "myFeature",
    # re-enable a feature that was previously disabled by a killswitch
    with_killswitch_override(1),
    # enable for 50% of customers in westus
    with_and(
        with_exact_match(REGION_KEY, "westus"),
        with_percentage(CUSTOMER_ID_KEY, 50),
    ),
    # enable for all customers in southcentralus
    with_exact_match(REGION_KEY, "southcentralus"),
)

logger = structlog.get_logger()


def log_feature_state(ctx: EvaluationContext, feature: str, state: bool) -> None:
    """Observer logging every evaluation."""
    logger.info("Feature evaluated", feature=feature, enabled=state)


def create_app(killswitch_path: str | None, force_enable: bool) -> FastAPI:
    """Create the demo application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Values that live for the life of the service go on the base context
        ctx = EvaluationContext.background().with_value(REGION_KEY, "westus")
        ctx = ctx.with_observer(log_feature_state)
        if force_enable:
            ctx = ctx.with_feature_override(my_feature, True)

        killswitch = None
        if killswitch_path:
            ctx, killswitch = await attach_file_killswitch(ctx, killswitch_path, 1.0)

        app.state.base_context = ctx
        try:
            yield
        finally:
            if killswitch is not None:
                await killswitch.stop()

    app = FastAPI(title="Feature Gate Demo", version="0.1.0", lifespan=lifespan)

    @app.middleware("http")
    async def bind_feature_context(request: Request, call_next: Any) -> Any:
        # Values scoped to this individual request
        ctx = request.app.state.base_context.with_value(
            CUSTOMER_ID_KEY, request.query_params.get("customer", "")
        )
        with FeatureContext(ctx):
            return await call_next(request)

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Report the feature state for the current request."""
        return {"feature": my_feature.name, "enabled": my_feature.enabled(get_current_context())}

    return app


def main() -> None:
    """Run the demo server."""
    parser = argparse.ArgumentParser(description="Feature gate demo server")
    parser.add_argument("--host", default="127.0.0.1", help="address to listen on")
    parser.add_argument("--port", type=int, default=8080, help="port to listen on")
    parser.add_argument(
        "--feat-override", action="store_true", help="force enable the feature"
    )
    parser.add_argument("--killswitch", default="", help="path to killswitch file")
    args = parser.parse_args()

    setup_logging(level=LogLevel.INFO, format_type=LogFormat.CONSOLE)
    app = create_app(args.killswitch or None, args.feat_override)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
