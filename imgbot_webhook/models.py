"""GitHub webhook payload and queue message models.

Payload models only declare the fields the router reads. Anything else
GitHub sends is ignored, and every field has an empty default so that a
payload for one event kind still parses when it lacks the fields of
another.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class Account(_Payload):
    """A GitHub user or organization account."""

    id: int = 0
    login: str = ""
    type: str = ""


class Owner(_Payload):
    login: str = ""


class Repository(_Payload):
    """Repository descriptor as sent in installation and push events."""

    name: str = ""
    full_name: str = ""
    owner: Owner = Field(default_factory=Owner)
    default_branch: str = ""


class Installation(_Payload):
    id: int = 0
    account: Account = Field(default_factory=Account)


class Sender(_Payload):
    id: int = 0
    login: str = ""


class Commit(_Payload):
    added: List[str] = Field(default_factory=list)
    modified: List[str] = Field(default_factory=list)


class Plan(_Payload):
    id: int = 0


class MarketplacePurchase(_Payload):
    account: Account = Field(default_factory=Account)
    plan: Plan = Field(default_factory=Plan)


class Hook(_Payload):
    """Decoded webhook body.

    The event kind is not part of the body; GitHub sends it in the
    ``X-GitHub-Event`` header.
    """

    action: str = ""
    ref: str = ""
    installation: Installation = Field(default_factory=Installation)
    repositories: List[Repository] = Field(default_factory=list)
    repositories_added: List[Repository] = Field(default_factory=list)
    repositories_removed: List[Repository] = Field(default_factory=list)
    repository: Repository = Field(default_factory=Repository)
    sender: Sender = Field(default_factory=Sender)
    commits: List[Commit] = Field(default_factory=list)
    marketplace_purchase: MarketplacePurchase = Field(default_factory=MarketplacePurchase)


class QueueMessage(BaseModel):
    """Base for messages placed on work queues, serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class RouterMessage(QueueMessage):
    """A repository that needs processing."""

    installation_id: int
    owner: str
    repo_name: str
    clone_url: str


class OpenPrMessage(QueueMessage):
    """A bot-authored branch that is ready for a pull request."""

    installation_id: int
    repo_name: str
    clone_url: str
