"""
CLI commands for index maintenance.

Commands for index creation, resynchronization and health checks.
"""

import json
import sys

import click
from loguru import logger

from ...content_types import ContentType
from . import build_service

CONTENT_TYPE_CHOICES = [content_type.value for content_type in ContentType]


@click.command(name="ensure-indices")
def ensure_indices():
    """Create any missing search indices."""
    service = build_service()
    try:
        ok = service.start()
    finally:
        service.close()

    if not ok:
        logger.error("Not every index could be ensured (is Elasticsearch reachable?)")
        sys.exit(1)

    logger.success("All search indices present")


@click.command(name="resync")
@click.option(
    "--content-type",
    "content_types",
    multiple=True,
    type=click.Choice(CONTENT_TYPE_CHOICES),
    help="Content type to resync (repeatable, default: all)",
)
def resync(content_types):
    """
    Rebuild index contents from the record store.

    Prints per content type counts; exits non-zero if any document failed.
    """
    service = build_service()
    try:
        if not service.start():
            logger.warning("Index setup incomplete, documents may fail to index")

        if content_types:
            outcomes = {content_type: service.resync(content_type) for content_type in content_types}
        else:
            outcomes = service.resync_all()
    finally:
        service.close()

    failed = 0
    for content_type, outcome in sorted(outcomes.items()):
        click.echo(f"{content_type}: {outcome.succeeded} indexed, {outcome.failed} failed")
        for failure in outcome.failures[:10]:
            click.echo(f"  {failure.document_id}: {failure.reason}")
        if len(outcome.failures) > 10:
            click.echo(f"  ... and {len(outcome.failures) - 10} more")
        failed += outcome.failed

    if failed:
        logger.error(f"Resync finished with {failed} failed documents")
        sys.exit(1)

    logger.success("Resync complete")


@click.command(name="health")
def health():
    """Show cluster health and per-index document counts."""
    service = build_service()
    try:
        status = service.health()
    finally:
        service.close()

    click.echo(json.dumps(status.model_dump(mode="json"), indent=2))

    if status.status in ("unavailable", "error", "red"):
        sys.exit(1)


index_commands = (ensure_indices, resync, health)
