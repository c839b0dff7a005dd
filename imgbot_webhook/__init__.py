"""GitHub App webhook that routes Imgbot events to work queues."""

__version__ = "0.1.0"
