"""RabbitMQ publishing for the webhook's work queues."""

import json
import logging
import threading
import time
from typing import Any, Dict, List, Optional

import pika

from imgbot_webhook.errors import QueuePublishError
from imgbot_webhook.models import QueueMessage

logger = logging.getLogger(__name__)


class RabbitMQPublisher:
    """RabbitMQ publisher with connection management and retry logic."""

    def __init__(self, url: str, retry_attempts: int = 3, retry_delay: float = 5):
        self.url = url
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.connection: Optional[pika.BlockingConnection] = None
        self.channel = None
        self._declared: set = set()
        self._lock = threading.Lock()

    def connect(self) -> None:
        """Establish connection to RabbitMQ."""
        try:
            self.connection = pika.BlockingConnection(pika.URLParameters(self.url))
            self.channel = self.connection.channel()
            self._declared.clear()
            logger.info("Connected to RabbitMQ")
        except Exception as e:
            logger.error(f"Failed to connect to RabbitMQ: {e}")
            raise

    def declare_queue(self, queue_name: str) -> None:
        """Declare a durable queue (creates if doesn't exist)."""
        if not self.channel:
            raise RuntimeError("Not connected to RabbitMQ. Call connect() first.")

        if queue_name not in self._declared:
            self.channel.queue_declare(queue=queue_name, durable=True)
            self._declared.add(queue_name)

    def ensure_connection(self) -> None:
        """Reconnect if the connection is closed or no longer healthy.

        An idle ``BlockingConnection`` does not service heartbeats, so the
        broker may have dropped it without ``is_closed`` noticing.
        """
        if self.is_connected():
            try:
                self.connection.process_data_events(time_limit=0)
                return
            except Exception as e:
                logger.warning(f"RabbitMQ connection unhealthy, reconnecting: {e}")
                self.close()

        self.connect()

    def publish(self, queue_name: str, message: Dict[str, Any]) -> None:
        """Publish a persistent JSON message, reconnecting between attempts.

        Calls are serialized; a ``BlockingConnection`` is not thread-safe.

        Raises:
            QueuePublishError: If every attempt failed.
        """
        with self._lock:
            self._publish(queue_name, json.dumps(message))

    def _publish(self, queue_name: str, body: str) -> None:
        for attempt in range(1, self.retry_attempts + 1):
            try:
                self.ensure_connection()
                self.declare_queue(queue_name)
                self.channel.basic_publish(
                    exchange="",
                    routing_key=queue_name,
                    body=body,
                    properties=pika.BasicProperties(delivery_mode=2),
                )
                logger.debug(f"Message published to '{queue_name}' (attempt {attempt})")
                return
            except Exception as e:
                logger.warning(f"Publish attempt {attempt} to '{queue_name}' failed: {e}")
                self.close()
                if attempt < self.retry_attempts:
                    time.sleep(self.retry_delay)

        logger.error(f"All publish attempts failed for '{queue_name}': {body}")
        raise QueuePublishError(queue_name, self.retry_attempts)

    def close(self) -> None:
        """Close the connection to RabbitMQ."""
        try:
            if self.connection and not self.connection.is_closed:
                self.connection.close()
                logger.info("Disconnected from RabbitMQ")
        except pika.exceptions.AMQPError as e:
            logger.warning(f"Error while closing RabbitMQ connection: {e}")
        finally:
            self.connection = None
            self.channel = None

    def is_connected(self) -> bool:
        return (
            self.connection is not None
            and not self.connection.is_closed
            and self.channel is not None
        )


class RabbitMQQueue:
    """One named queue on a shared publisher."""

    def __init__(self, publisher: RabbitMQPublisher, queue_name: str):
        self.publisher = publisher
        self.queue_name = queue_name

    def enqueue(self, message: QueueMessage) -> None:
        self.publisher.publish(self.queue_name, message.to_payload())


class LoggingQueue:
    """Dev mode queue: logs messages instead of publishing them."""

    def __init__(self, queue_name: str):
        self.queue_name = queue_name
        self.messages: List[QueueMessage] = []

    def enqueue(self, message: QueueMessage) -> None:
        self.messages.append(message)
        logger.info(
            f"[DEV MODE] Would publish to '{self.queue_name}': "
            f"{json.dumps(message.to_payload(), indent=2)}"
        )
