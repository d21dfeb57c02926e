"""Runtime lifespan: startup and shutdown for a process hosting the engine.

Single place for startup/shutdown wiring (logging, telemetry, side-effect
worker, DB engine dispose); no business logic here.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from taskflow.application.services.side_effects import SideEffectChannel
from taskflow.core.config import get_settings
from taskflow.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def engine_runtime(
    queued_side_effects: bool = True,
) -> AsyncIterator[SideEffectChannel]:
    """Start logging, telemetry and the side-effect worker; yield the channel.

    Startup order: logging, telemetry (if enabled), side-effect worker.
    Shutdown order: drain side effects, telemetry shutdown, SQL engine dispose.
    """
    settings = get_settings()
    setup_logging()

    telemetry = None
    if settings.telemetry_enabled:
        from taskflow.infrastructure.persistence import database
        from taskflow.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            enabled=True,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_logging()
        database._ensure_engine()
        if database.engine is not None:
            telemetry.instrument_sqlalchemy(database.engine)
        logger.info("Telemetry initialized")

    channel = SideEffectChannel(settings.side_effect_queue_size)
    if queued_side_effects:
        await channel.start()

    try:
        yield channel
    finally:
        await channel.stop()
        if telemetry is not None:
            from taskflow.shared.telemetry.telemetry import set_telemetry

            telemetry.shutdown()
            set_telemetry(None)

        from taskflow.infrastructure.persistence import database

        await database.dispose_engine()
