"""GitHub event kinds and actions handled by the webhook.

Header and payload strings are mapped onto these enums once, where the
request is read. Anything unrecognized maps onto an explicit catch-all
member instead of raising.
"""

from enum import Enum


class GitHubEventKind(str, Enum):
    """Values of the ``X-GitHub-Event`` header."""

    INSTALLATION_REPOSITORIES = "installation_repositories"
    INSTALLATION = "installation"
    INTEGRATION_INSTALLATION_REPOSITORIES = "integration_installation_repositories"
    INTEGRATION_INSTALLATION = "integration_installation"
    PUSH = "push"
    MARKETPLACE_PURCHASE = "marketplace_purchase"
    UNHANDLED = "unhandled"

    @classmethod
    def from_header(cls, value: str) -> "GitHubEventKind":
        """Map a header value to a kind, falling back to ``UNHANDLED``."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNHANDLED

    @property
    def is_installation(self) -> bool:
        return self in INSTALLATION_KINDS


INSTALLATION_KINDS = frozenset(
    {
        GitHubEventKind.INSTALLATION_REPOSITORIES,
        GitHubEventKind.INSTALLATION,
        GitHubEventKind.INTEGRATION_INSTALLATION_REPOSITORIES,
        GitHubEventKind.INTEGRATION_INSTALLATION,
    }
)

HANDLED_KINDS = tuple(
    kind for kind in GitHubEventKind if kind is not GitHubEventKind.UNHANDLED
)


class InstallationAction(str, Enum):
    CREATED = "created"
    ADDED = "added"
    REMOVED = "removed"
    DELETED = "deleted"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "InstallationAction":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class MarketplaceAction(str, Enum):
    PURCHASED = "purchased"
    CANCELLED = "cancelled"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "MarketplaceAction":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER
