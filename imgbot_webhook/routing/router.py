"""Event routing for Imgbot's GitHub App webhooks.

The router classifies one webhook delivery and dispatches its effects to
the queues and tables it was constructed with. It keeps no state between
deliveries and never catches collaborator errors.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Protocol, Tuple

from imgbot_webhook.models import Hook, OpenPrMessage, Repository, RouterMessage
from imgbot_webhook.routing.events import (
    GitHubEventKind,
    InstallationAction,
    MarketplaceAction,
)

logger = logging.getLogger(__name__)

GITHUB_URL = "https://github.com/"

NO_ACTION = "no action"
HANDLED = "truth"
NON_DEFAULT_BRANCH = "Commit to non default branch"
NO_IMAGES = "No image files touched"


class MessageQueue(Protocol):
    def enqueue(self, message: Any) -> None: ...


class InstallationTable(Protocol):
    def delete_row(self, partition_key: str, row_key: str) -> None: ...

    def delete_partition(self, partition_key: str) -> None: ...


class MarketplaceTable(Protocol):
    def upsert_merge(
        self, partition_key: str, row_key: str, fields: Dict[str, Any]
    ) -> None: ...

    def delete_row(self, partition_key: str, row_key: str) -> None: ...


@dataclass(frozen=True)
class RouterConfig:
    """Process-wide routing constants, read-only at request time."""

    bot_login: str = "imgbot[bot]"
    """Login of the bot account whose pushes request a pull request."""

    bot_branch: str = "imgbot"
    """Branch the bot pushes its commits to."""

    bot_name: str = "imgbot"
    """Name used in the bot round-trip outcome."""

    image_extensions: Tuple[str, ...] = field(
        default=(".png", ".jpg", ".jpeg", ".gif", ".svg")
    )
    """Case-sensitive suffixes of files that warrant processing."""

    @property
    def bot_ref(self) -> str:
        return f"refs/heads/{self.bot_branch}"

    def is_image(self, path: str) -> bool:
        return path.endswith(self.image_extensions)


def clone_url(full_name: str) -> str:
    return GITHUB_URL + full_name


class EventRouter:
    """Routes GitHub App events to work queues and record tables."""

    def __init__(
        self,
        config: RouterConfig,
        router_queue: MessageQueue,
        open_pr_queue: MessageQueue,
        installations: InstallationTable,
        marketplace: MarketplaceTable,
    ):
        self.config = config
        self.router_queue = router_queue
        self.open_pr_queue = open_pr_queue
        self.installations = installations
        self.marketplace = marketplace

    def route(self, kind: GitHubEventKind, hook: Hook) -> str:
        """Apply the rules for ``kind`` to ``hook`` and return the outcome.

        Args:
            kind: The event kind read from the ``X-GitHub-Event`` header.
            hook: The decoded webhook body.

        Returns:
            A diagnostic outcome string. It is not a status: every outcome,
            including "no action", means the delivery was handled.
        """
        if kind.is_installation:
            return self.process_installation(hook)
        if kind is GitHubEventKind.PUSH:
            return self.process_push(hook)
        if kind is GitHubEventKind.MARKETPLACE_PURCHASE:
            return self.process_marketplace_purchase(hook)

        logger.debug(f"Ignoring unhandled event kind: {kind.value}")
        return NO_ACTION

    def process_push(self, hook: Hook) -> str:
        # Guard order matters: a bot push short-circuits before the
        # default branch check.
        repo = hook.repository
        if hook.ref == self.config.bot_ref and hook.sender.login == self.config.bot_login:
            self.open_pr_queue.enqueue(
                OpenPrMessage(
                    installation_id=hook.installation.id,
                    repo_name=repo.name,
                    clone_url=clone_url(repo.full_name),
                )
            )
            logger.info(f"process_push: Added OpenPrMessage for {repo.full_name}")
            return f"{self.config.bot_name} push"

        if hook.ref != f"refs/heads/{repo.default_branch}":
            return NON_DEFAULT_BRANCH

        touched = (
            path
            for commit in hook.commits
            for path in (*commit.added, *commit.modified)
        )
        if not any(self.config.is_image(path) for path in touched):
            return NO_IMAGES

        self.router_queue.enqueue(
            RouterMessage(
                installation_id=hook.installation.id,
                owner=repo.owner.login,
                repo_name=repo.name,
                clone_url=clone_url(repo.full_name),
            )
        )
        logger.info(f"process_push: Added RouterMessage for {repo.full_name}")
        return HANDLED

    def process_installation(self, hook: Hook) -> str:
        """Handle installation lifecycle and repository selection changes.

        Always returns "truth" whatever the action was.
        """
        installation_id = hook.installation.id
        action = InstallationAction.parse(hook.action)

        if action is InstallationAction.CREATED:
            self._enqueue_repositories(hook, hook.repositories, action)
        elif action is InstallationAction.ADDED:
            self._enqueue_repositories(hook, hook.repositories_added, action)
        elif action is InstallationAction.REMOVED:
            for repo in hook.repositories_removed:
                self.installations.delete_row(str(installation_id), repo.name)
                logger.info(
                    f"process_installation/removed: Dropped row "
                    f"{installation_id} :: {repo.name}"
                )
        elif action is InstallationAction.DELETED:
            self.installations.delete_partition(str(installation_id))
            logger.info(
                f"process_installation/deleted: Dropped partition {installation_id}"
            )

        return HANDLED

    def _enqueue_repositories(
        self,
        hook: Hook,
        repositories: Iterable[Repository],
        action: InstallationAction,
    ) -> None:
        for repo in repositories:
            self.router_queue.enqueue(
                RouterMessage(
                    installation_id=hook.installation.id,
                    owner=hook.installation.account.login,
                    repo_name=repo.name,
                    clone_url=clone_url(repo.full_name),
                )
            )
            logger.info(
                f"process_installation/{action.value}: Added RouterMessage "
                f"for {repo.full_name}"
            )

    def process_marketplace_purchase(self, hook: Hook) -> str:
        """Keep the marketplace record for a purchasing account current.

        Unknown actions are returned unchanged as the outcome.
        """
        purchase = hook.marketplace_purchase
        account = purchase.account
        action = MarketplaceAction.parse(hook.action)

        if action is MarketplaceAction.PURCHASED:
            self.marketplace.upsert_merge(
                str(account.id),
                account.login,
                {
                    "accountType": account.type,
                    "planId": purchase.plan.id,
                    "senderId": hook.sender.id,
                    "senderLogin": hook.sender.login,
                },
            )
            logger.info(f"process_marketplace_purchase/purchased for {account.login}")
            return MarketplaceAction.PURCHASED.value

        if action is MarketplaceAction.CANCELLED:
            self.marketplace.delete_row(str(account.id), account.login)
            logger.info(f"process_marketplace_purchase/cancelled for {account.login}")
            return MarketplaceAction.CANCELLED.value

        return hook.action
