"""Shared fixtures for webhook tests."""

import pytest

from imgbot_webhook.queue import LoggingQueue
from imgbot_webhook.routing import EventRouter, RouterConfig
from imgbot_webhook.storage import InMemoryTable


@pytest.fixture
def router_config():
    return RouterConfig()


@pytest.fixture
def router_queue():
    return LoggingQueue("routermessage")


@pytest.fixture
def open_pr_queue():
    return LoggingQueue("openprmessage")


@pytest.fixture
def installations():
    return InMemoryTable("installation")


@pytest.fixture
def marketplace():
    return InMemoryTable("marketplace")


@pytest.fixture
def router(router_config, router_queue, open_pr_queue, installations, marketplace):
    return EventRouter(
        config=router_config,
        router_queue=router_queue,
        open_pr_queue=open_pr_queue,
        installations=installations,
        marketplace=marketplace,
    )

