"""Errors raised by the webhook's transport collaborators."""


class QueuePublishError(RuntimeError):
    """Raised when a message could not be published after all retries."""

    def __init__(self, queue_name: str, attempts: int):
        self.queue_name = queue_name
        self.attempts = attempts
        super().__init__(
            f"Failed to publish to '{queue_name}' after {attempts} attempt(s)"
        )
