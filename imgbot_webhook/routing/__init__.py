"""Event routing for GitHub App webhooks."""

from .events import GitHubEventKind, InstallationAction, MarketplaceAction
from .router import EventRouter, RouterConfig

__all__ = [
    "EventRouter",
    "GitHubEventKind",
    "InstallationAction",
    "MarketplaceAction",
    "RouterConfig",
]
