"""FastAPI GitHub App webhook that routes Imgbot events to work queues."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from mangum import Mangum
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from imgbot_webhook.config import Settings, settings
from imgbot_webhook.errors import QueuePublishError
from imgbot_webhook.logging import configure_logging
from imgbot_webhook.models import Hook
from imgbot_webhook.queue import LoggingQueue, RabbitMQPublisher, RabbitMQQueue
from imgbot_webhook.routing import EventRouter, GitHubEventKind
from imgbot_webhook.routing.events import HANDLED_KINDS
from imgbot_webhook.routing.router import NO_ACTION
from imgbot_webhook.storage import InMemoryTable, RedisTable

logger = logging.getLogger(__name__)

publisher: Optional[RabbitMQPublisher] = None
redis_client: Optional[redis.Redis] = None
router: Optional[EventRouter] = None


def create_dev_router(cfg: Settings) -> EventRouter:
    """Router whose messages are logged and whose tables live in memory."""
    return EventRouter(
        config=cfg.router_config(),
        router_queue=LoggingQueue(cfg.router_queue),
        open_pr_queue=LoggingQueue(cfg.open_pr_queue),
        installations=InMemoryTable(cfg.installation_table),
        marketplace=InMemoryTable(cfg.marketplace_table),
    )


def create_router(cfg: Settings) -> EventRouter:
    """Connect to RabbitMQ and redis and wire them into a router.

    Falls back to dev mode when either connection fails.
    """
    global publisher, redis_client

    if cfg.dev_mode:
        logger.info("Running in dev mode - messages will be logged instead of queued")
        return create_dev_router(cfg)

    try:
        publisher = RabbitMQPublisher(
            cfg.rabbitmq_url,
            retry_attempts=cfg.rabbitmq_retry_attempts,
            retry_delay=cfg.rabbitmq_retry_delay,
        )
        publisher.connect()
        redis_client = redis.Redis.from_url(cfg.redis_url, decode_responses=True)
        redis_client.ping()
    except Exception as e:
        logger.warning(f"Failed to connect to backing services: {e}. Running in dev mode.")
        close_connections()
        cfg.dev_mode = True
        return create_dev_router(cfg)

    return EventRouter(
        config=cfg.router_config(),
        router_queue=RabbitMQQueue(publisher, cfg.router_queue),
        open_pr_queue=RabbitMQQueue(publisher, cfg.open_pr_queue),
        installations=RedisTable(redis_client, cfg.installation_table),
        marketplace=RedisTable(redis_client, cfg.marketplace_table),
    )


def close_connections() -> None:
    global publisher, redis_client

    if publisher:
        publisher.close()
        publisher = None
    if redis_client:
        redis_client.close()
        redis_client = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global router

    configure_logging(settings.log_level)
    router = create_router(settings)
    logger.info(f"Initialized event router for events: {[k.value for k in HANDLED_KINDS]}")
    yield
    close_connections()
    router = None


app = FastAPI(lifespan=lifespan)
handler = Mangum(app)  # for AWS Lambda / API Gateway


def get_router() -> EventRouter:
    if router is None:
        raise HTTPException(status_code=503, detail="Event router not initialized")
    return router


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "dev_mode": settings.dev_mode,
        "handled_events": [kind.value for kind in HANDLED_KINDS],
    }


@app.post("/hook")
async def handle_webhook(
    request: Request,
    x_github_event: str = Header(...),
    event_router: EventRouter = Depends(get_router),
):
    """Classify a GitHub App event and dispatch its effects."""
    kind = GitHubEventKind.from_header(x_github_event)
    if kind is GitHubEventKind.UNHANDLED:
        return {"Result": NO_ACTION}

    try:
        payload = await request.json()
        hook = Hook.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Rejected malformed {x_github_event} payload: {e}")
        raise HTTPException(status_code=400, detail="Malformed webhook payload")

    try:
        # Queue and store calls block; keep them off the event loop.
        result = await run_in_threadpool(event_router.route, kind, hook)
    except QueuePublishError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except redis.RedisError as e:
        logger.error(f"Record store operation failed for {kind.value}: {e}")
        raise HTTPException(status_code=500, detail="Record store operation failed")

    logger.info(f"{kind.value}: {result}")
    return {"Result": result}
