"""Main entry point for the education gateway runtime."""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

import structlog

from edu_gateway.adapters.http.server import EduGatewayServer
from edu_gateway.config.loader import load_config
from edu_gateway.observability.logging import setup_logging

if TYPE_CHECKING:
    from pathlib import Path

    from edu_gateway.config.schema import ServiceConfig

logger = structlog.get_logger(__name__)


class GatewayRuntime:
    """Runtime orchestrator owning the HTTP gateway lifecycle."""

    def __init__(self, config: ServiceConfig) -> None:
        self.config = config
        self._shutdown_event = asyncio.Event()
        self._http_server: EduGatewayServer | None = None

    async def start(self) -> None:
        """Start the gateway runtime."""
        logger.info(
            "Starting education gateway",
            name=self.config.service.name,
            environment=self.config.service.environment.value,
            version=self.config.service.version,
        )

        self._http_server = EduGatewayServer(self.config)
        await self._http_server.start()

        logger.info("Education gateway started successfully")

    async def stop(self) -> None:
        """Stop the gateway runtime gracefully."""
        logger.info("Stopping education gateway")

        if self._http_server:
            await self._http_server.stop()
            self._http_server = None

        logger.info("Education gateway stopped")

    async def run_until_shutdown(self) -> None:
        """Run until shutdown signal received."""
        await self._shutdown_event.wait()

    def request_shutdown(self) -> None:
        """Request graceful shutdown."""
        self._shutdown_event.set()


async def run_gateway(config_path: Path, override_path: Path | None = None) -> None:
    """Main entry point for running the gateway."""
    # Setup logging first
    setup_logging()

    # Load configuration
    config = load_config(config_path, override_path=override_path)

    # Create and start runtime
    runtime = GatewayRuntime(config)

    # Setup signal handlers
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, runtime.request_shutdown)

    try:
        await runtime.start()
        await runtime.run_until_shutdown()
    finally:
        await runtime.stop()


def main() -> None:
    """CLI entry point - delegates to typer app."""
    from edu_gateway.cli.app import app  # noqa: PLC0415

    app()


if __name__ == "__main__":
    main()
