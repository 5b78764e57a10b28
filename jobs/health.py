"""
Health check server for scheduler monitoring.

Provides HTTP endpoints for health checks and monitoring.
"""

import asyncio

from aiohttp import web
from loguru import logger

from jobs.scheduler import LedgerScheduler

SCHEDULER_KEY = web.AppKey("scheduler", LedgerScheduler)


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with scheduler state, in-flight jobs and last runs
    """
    scheduler = request.app[SCHEDULER_KEY]
    status = scheduler.status()
    return web.json_response(
        {
            "status": "healthy" if status["running"] else "stopped",
            **status,
        },
        status=200 if status["running"] else 503,
    )


async def readiness_handler(request: web.Request) -> web.Response:
    """
    Readiness check endpoint.

    Returns:
        JSON response indicating if the scheduler is running
    """
    scheduler = request.app[SCHEDULER_KEY]
    if not scheduler.running:
        return web.json_response(
            {
                "status": "not_ready",
                "ready": False,
            },
            status=503,
        )

    return web.json_response(
        {
            "status": "ready",
            "ready": True,
            "in_flight": scheduler.in_flight(),
        }
    )


def create_health_app(scheduler: LedgerScheduler) -> web.Application:
    """
    Build the health application for scheduler.

    Args:
        scheduler: Scheduler to report on
    """
    app = web.Application()
    app[SCHEDULER_KEY] = scheduler
    app.router.add_get("/health", health_handler)
    app.router.add_get("/ready", readiness_handler)
    return app


async def start_health_server(
    scheduler: LedgerScheduler,
    host: str = "0.0.0.0",
    port: int = 8081,
) -> web.AppRunner:
    """
    Start health check server.

    Args:
        scheduler: Scheduler to report on
        host: Host to bind to
        port: Port to bind to

    Returns:
        AppRunner for cleanup
    """
    runner = web.AppRunner(create_health_app(scheduler))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Health check server started on {host}:{port}")
    logger.info(f"  - Health: http://{host}:{port}/health")
    logger.info(f"  - Readiness: http://{host}:{port}/ready")

    return runner


async def stop_health_server(
    runner: web.AppRunner,
    timeout: int = 5,
) -> None:
    """
    Stop health check server gracefully.

    Args:
        runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("Stopping health check server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("Health check server stopped successfully")
    except TimeoutError:
        logger.warning(f"Health check server cleanup timed out after {timeout}s")
