"""Unit tests for RabbitMQ publishing."""

import json
import threading
import time
from unittest.mock import MagicMock, patch

import pika
import pytest

from imgbot_webhook.errors import QueuePublishError
from imgbot_webhook.models import OpenPrMessage
from imgbot_webhook.queue import LoggingQueue, RabbitMQPublisher, RabbitMQQueue


@pytest.fixture
def blocking_connection():
    with patch("imgbot_webhook.queue.rabbitmq.pika.BlockingConnection") as mock_connection:
        mock_connection.return_value.is_closed = False
        yield mock_connection


@pytest.fixture
def channel(blocking_connection):
    return blocking_connection.return_value.channel.return_value


class TestRabbitMQPublisher:
    """Test cases for the publisher."""

    def test_publish_connects_and_declares_durable_queue(self, blocking_connection, channel):
        publisher = RabbitMQPublisher("amqp://u:p@localhost:5672", retry_delay=0)

        publisher.publish("routermessage", {"repoName": "website"})

        blocking_connection.assert_called_once()
        channel.queue_declare.assert_called_once_with(queue="routermessage", durable=True)
        kwargs = channel.basic_publish.call_args.kwargs
        assert kwargs["routing_key"] == "routermessage"
        assert json.loads(kwargs["body"]) == {"repoName": "website"}
        assert kwargs["properties"].delivery_mode == 2

    def test_queue_declared_once_per_connection(self, channel):
        publisher = RabbitMQPublisher("amqp://localhost", retry_delay=0)

        publisher.publish("routermessage", {})
        publisher.publish("routermessage", {})

        channel.queue_declare.assert_called_once()
        assert channel.basic_publish.call_count == 2

    def test_retries_then_succeeds(self, blocking_connection, channel):
        channel.basic_publish.side_effect = [ConnectionError("boom"), None]
        publisher = RabbitMQPublisher("amqp://localhost", retry_attempts=3, retry_delay=0)

        with patch("imgbot_webhook.queue.rabbitmq.time.sleep") as mock_sleep:
            publisher.publish("openprmessage", {})

        assert channel.basic_publish.call_count == 2
        assert blocking_connection.call_count == 2
        mock_sleep.assert_called_once_with(0)

    def test_raises_after_all_attempts(self, channel):
        channel.basic_publish.side_effect = ConnectionError("boom")
        publisher = RabbitMQPublisher("amqp://localhost", retry_attempts=2, retry_delay=0)

        with patch("imgbot_webhook.queue.rabbitmq.time.sleep"):
            with pytest.raises(QueuePublishError) as exc_info:
                publisher.publish("openprmessage", {})

        assert exc_info.value.queue_name == "openprmessage"
        assert exc_info.value.attempts == 2
        assert channel.basic_publish.call_count == 2

    def test_declare_without_connection(self):
        with pytest.raises(RuntimeError):
            RabbitMQPublisher("amqp://localhost").declare_queue("routermessage")

    def test_stale_connection_reconnects_without_delay(self, blocking_connection, channel):
        """Test that a connection dropped while idle is replaced before publishing."""
        publisher = RabbitMQPublisher("amqp://localhost", retry_delay=5)
        publisher.publish("routermessage", {})
        blocking_connection.return_value.process_data_events.side_effect = (
            pika.exceptions.StreamLostError("heartbeat missed")
        )

        with patch("imgbot_webhook.queue.rabbitmq.time.sleep") as mock_sleep:
            publisher.publish("routermessage", {})

        assert blocking_connection.call_count == 2
        assert channel.basic_publish.call_count == 2
        mock_sleep.assert_not_called()

    def test_healthy_connection_is_reused(self, blocking_connection):
        publisher = RabbitMQPublisher("amqp://localhost", retry_delay=0)

        publisher.publish("routermessage", {})
        publisher.publish("openprmessage", {})

        blocking_connection.assert_called_once()
        blocking_connection.return_value.process_data_events.assert_called_once_with(time_limit=0)

    def test_concurrent_publishes_are_serialized(self, channel):
        """Test that two threads never use the channel at the same time."""
        active = []
        overlaps = []

        def basic_publish(**kwargs):
            if active:
                overlaps.append(kwargs["routing_key"])
            active.append(kwargs["routing_key"])
            time.sleep(0.05)
            active.pop()

        channel.basic_publish.side_effect = basic_publish
        publisher = RabbitMQPublisher("amqp://localhost", retry_delay=0)
        threads = [
            threading.Thread(target=publisher.publish, args=(name, {}))
            for name in ("routermessage", "openprmessage", "routermessage")
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlaps == []
        assert channel.basic_publish.call_count == 3


class TestQueues:
    """Test cases for the queue adapters."""

    def test_rabbitmq_queue_publishes_camel_case_payload(self):
        publisher = MagicMock()
        queue = RabbitMQQueue(publisher, "openprmessage")

        queue.enqueue(OpenPrMessage(installation_id=1, repo_name="r", clone_url="u"))

        publisher.publish.assert_called_once_with(
            "openprmessage", {"installationId": 1, "repoName": "r", "cloneUrl": "u"}
        )

    def test_logging_queue_records_messages(self):
        queue = LoggingQueue("openprmessage")
        message = OpenPrMessage(installation_id=1, repo_name="r", clone_url="u")

        queue.enqueue(message)

        assert queue.messages == [message]
