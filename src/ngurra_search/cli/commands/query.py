"""
CLI commands for querying the search indices.

Results are printed as JSON.
"""

import json
import sys
from typing import Any, Dict, Tuple

import click
from loguru import logger

from ...content_types import ContentType
from . import build_service

CONTENT_TYPE_CHOICES = [content_type.value for content_type in ContentType]


def parse_scalar(raw: str) -> Any:
    """Best-effort typed value for a command line token"""
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    return raw


def parse_filter(raw: str) -> Tuple[str, Any]:
    """
    Parse one --filter option.

    Formats:
        name=value          equality
        name=a,b,c          any of the values
        name=low..high      range (either side may be empty)

    Raises:
        click.BadParameter: If the option has no '='
    """
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise click.BadParameter(f"expected name=value, got '{raw}'", param_hint="--filter")

    name, value = name.strip(), value.strip()
    if ".." in value:
        low, _, high = value.partition("..")
        bounds: Dict[str, Any] = {}
        if low:
            bounds["min"] = parse_scalar(low)
        if high:
            bounds["max"] = parse_scalar(high)
        return name, bounds
    if "," in value:
        return name, [parse_scalar(part.strip()) for part in value.split(",") if part.strip()]
    return name, parse_scalar(value)


def echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


@click.command(name="search")
@click.argument("content_type", type=click.Choice(CONTENT_TYPE_CHOICES))
@click.argument("text", required=False, default="")
@click.option("--filter", "filters", multiple=True, help="Filter as name=value, name=a,b or name=lo..hi")
@click.option("--offset", default=0, type=int, help="Result offset")
@click.option("--limit", default=None, type=int, help="Page size")
@click.option("--sort", default=None, help="Sort as field:asc|desc")
@click.option("--no-facets", is_flag=True, help="Skip facet aggregations")
def search(content_type, text, filters, offset, limit, sort, no_facets):
    """Search CONTENT_TYPE for TEXT."""
    request: Dict[str, Any] = {
        "free_text": text,
        "filters": dict(parse_filter(raw) for raw in filters),
        "offset": offset,
        "sort": sort,
        "want_facets": not no_facets,
    }
    if limit is not None:
        request["limit"] = limit

    service = build_service()
    try:
        result = service.search(content_type, request)
    finally:
        service.close()

    if result.error:
        logger.error(result.error)
        sys.exit(1)
    if result.degraded:
        logger.warning("Search engine unavailable, results served from the record store")

    echo_json(result.model_dump(mode="json"))


@click.command(name="suggest")
@click.argument("content_type", type=click.Choice(CONTENT_TYPE_CHOICES))
@click.argument("prefix")
@click.option("--limit", default=5, type=int, help="Maximum suggestions")
def suggest(content_type, prefix, limit):
    """Type-ahead suggestions for PREFIX."""
    service = build_service()
    try:
        suggestions = service.suggest(content_type, prefix, limit)
    finally:
        service.close()

    echo_json(suggestions)


@click.command(name="similar")
@click.argument("content_type", type=click.Choice(CONTENT_TYPE_CHOICES))
@click.argument("document_id")
@click.option("--limit", default=5, type=int, help="Maximum hits")
def similar(content_type, document_id, limit):
    """Documents similar to DOCUMENT_ID."""
    service = build_service()
    try:
        hits = service.find_similar(content_type, document_id, limit)
    finally:
        service.close()

    echo_json([hit.model_dump(mode="json") for hit in hits])


query_commands = (search, suggest, similar)
