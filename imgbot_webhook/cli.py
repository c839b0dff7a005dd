"""Command line entry points for the Imgbot webhook."""

import json
import logging
import sys

import click
from pydantic import ValidationError

from imgbot_webhook.config import settings
from imgbot_webhook.logging import configure_logging
from imgbot_webhook.models import Hook
from imgbot_webhook.routing import GitHubEventKind
from imgbot_webhook.routing.events import HANDLED_KINDS

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(package_name="imgbot-webhook")
def cli():
    """Imgbot GitHub App webhook."""
    configure_logging(settings.log_level)


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=9000, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool):
    """Run the webhook HTTP server."""
    import uvicorn

    uvicorn.run("imgbot_webhook.main:app", host=host, port=port, reload=reload)


@cli.command()
@click.argument("kind")
@click.argument("payload_file", type=click.File("r"))
def route(kind: str, payload_file):
    """Route one webhook payload through a dev mode router.

    KIND is the X-GitHub-Event value, PAYLOAD_FILE a JSON webhook body
    ("-" for stdin). Messages are printed, nothing is published.
    """
    from imgbot_webhook.main import create_dev_router

    try:
        hook = Hook.model_validate(json.load(payload_file))
    except (ValueError, ValidationError) as e:
        logger.error(f"Invalid payload: {e}")
        sys.exit(1)

    router = create_dev_router(settings)
    result = router.route(GitHubEventKind.from_header(kind), hook)

    click.echo(f"Result: {result}")
    for queue in (router.router_queue, router.open_pr_queue):
        for message in queue.messages:
            click.echo(f"{queue.queue_name}: {json.dumps(message.to_payload())}")


@cli.command("kinds")
def list_kinds():
    """List the event kinds the webhook handles."""
    for kind in HANDLED_KINDS:
        click.echo(kind.value)


if __name__ == "__main__":
    cli()
