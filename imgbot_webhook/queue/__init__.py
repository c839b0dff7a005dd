"""Queue publishing for RabbitMQ integration."""

from .rabbitmq import LoggingQueue, RabbitMQPublisher, RabbitMQQueue

__all__ = ["LoggingQueue", "RabbitMQPublisher", "RabbitMQQueue"]
