"""FastAPI application entry point for Kredits Bridge.

Run with:
    uvicorn kredits_bridge.api.main:app
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI

from kredits_bridge import __version__
from kredits_bridge.api.middleware.logging_middleware import LoggingMiddleware
from kredits_bridge.api.routes.health import router as health_router
from kredits_bridge.api.routes.webhooks import router as webhooks_router
from kredits_bridge.application.services.signer_balance import check_signer_balance
from kredits_bridge.bootstrap.container import KreditsContainer, build_container
from kredits_bridge.bootstrap.logging import configure_structlog
from kredits_bridge.config.kredits_config import load_config
from kredits_bridge.domain.errors import UpstreamFetchError

log = structlog.get_logger()


async def start_background_work(container: KreditsContainer) -> list[asyncio.Task]:
    """Seed the sequencer, check the wallet and start the workers."""
    if not container.sequencer.started:
        await container.sequencer.start()

    try:
        await check_signer_balance(
            container.ledger,
            container.notifier,
            container.config.integrations.chat_room,
            container.config.ledger.min_signer_balance,
        )
    except UpstreamFetchError as e:
        log.error("signer_balance_check_failed", error=str(e), url=e.url)

    tasks = [
        asyncio.create_task(container.sequencer.run(), name="submission-sequencer"),
        asyncio.create_task(container.intake.run(), name="webhook-intake"),
    ]
    if container.wiki_poller is not None:
        tasks.append(
            asyncio.create_task(
                container.wiki_poller.run(
                    container.config.integrations.mediawiki_poll_interval
                ),
                name="wiki-poller",
            )
        )
    return tasks


async def stop_background_work(tasks: list[asyncio.Task]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the container unless one was installed, then run the workers."""
    container: KreditsContainer | None = getattr(app.state, "container", None)
    if container is None:
        config = load_config()
        configure_structlog(config.environment)
        container = build_container(config)
        app.state.container = container

    tasks = await start_background_work(container)
    log.info("kredits_bridge_started", workers=[t.get_name() for t in tasks])
    try:
        yield
    finally:
        await stop_background_work(tasks)
        await container.aclose()
        log.info("kredits_bridge_stopped")


def create_app(container: KreditsContainer | None = None) -> FastAPI:
    """Create the application, optionally with a prebuilt container."""
    application = FastAPI(
        title="Kredits Bridge",
        description="Contribution attribution for the Kredits ledger",
        version=__version__,
        lifespan=lifespan,
    )
    if container is not None:
        application.state.container = container
    application.add_middleware(LoggingMiddleware)
    application.include_router(health_router)
    application.include_router(webhooks_router)
    return application


app = create_app()
