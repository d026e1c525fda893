"""
Intake Command Line Interface
==============================

click commands that drive the pipeline over JSON files.

Usage:
    ticket-intake process tickets.json --stats
    ticket-intake search tickets.json --title "laptop won't boot"
    ticket-intake classify "VPN down" "cannot reach the office network"

Results go to stdout as JSON; logs go to stderr.
"""

import json
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple
from uuid import uuid4

import click

from config import Settings, get_settings
from core import ApplicationException
from shared.infrastructure.logging import get_context_logger


def _load_settings(rules: Optional[str]) -> Settings:
    settings = get_settings()
    if rules:
        settings = settings.model_copy(update={"rules_config_path": Path(rules)})
    return settings


def _read_batch(path: str) -> Tuple[List[Any], List[Any]]:
    """Split a batch file into (customers, tickets)."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"invalid JSON in {path}: {e}")

    if isinstance(data, list):
        return [], data
    if isinstance(data, dict):
        return list(data.get("customers") or []), list(data.get("tickets") or [])
    raise click.BadParameter("expected a JSON array of tickets or an object with 'tickets'")


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _fail(message: str) -> None:
    click.echo(f"[ERROR] {message}", err=True)
    sys.exit(1)


def _load_pipeline(ctx: click.Context, path: str):
    """Build a pipeline and feed it the customers and tickets from path."""
    from main import build_pipeline

    customers, tickets = _read_batch(path)
    pipeline = build_pipeline(ctx.obj["settings"])
    ctx.call_on_close(pipeline.dispose)

    batch_logger = get_context_logger(__name__, correlation_id=f"batch-{uuid4()}")
    batch_logger.info(f"Batch started: {path} ({len(customers)} customers, {len(tickets)} tickets)")
    for customer in customers:
        pipeline.add_customer(customer)
    decorated = [pipeline.process_ticket(ticket) for ticket in tickets]
    batch_logger.info(f"Batch finished: {len(decorated)} tickets processed")
    return pipeline, decorated


@click.group()
@click.option(
    "--rules",
    default=None,
    type=click.Path(dir_okay=False),
    help="Keyword rules YAML file (default: RULES_CONFIG_PATH or intake_rules.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, rules: Optional[str]):
    """Analyze support tickets: classification, customer matching, duplicates and trends."""
    ctx.ensure_object(dict)
    ctx.obj["settings"] = _load_settings(rules)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--stats", is_flag=True, help="Append pipeline statistics to the output")
@click.pass_context
def process(ctx: click.Context, path: str, stats: bool):
    """Process a batch of tickets and print the decorated tickets."""
    try:
        pipeline, decorated = _load_pipeline(ctx, path)
    except ApplicationException as e:
        _fail(e.message)
        return

    tickets = [record.to_dict() for record in decorated]
    if stats:
        _echo_json({"tickets": tickets, "stats": pipeline.get_stats().model_dump()})
    else:
        _echo_json(tickets)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--title", default="", help="Query title")
@click.option("--description", default="", help="Query description")
@click.option("--limit", default=None, type=int, help="Maximum number of matches")
@click.pass_context
def search(ctx: click.Context, path: str, title: str, description: str, limit: Optional[int]):
    """Process a ticket corpus, then rank it against a free-text query."""
    try:
        pipeline, _ = _load_pipeline(ctx, path)
    except ApplicationException as e:
        _fail(e.message)
        return

    matches = pipeline.search_similar_tickets(title, description, limit)
    _echo_json([match.to_dict() for match in matches])


@cli.command()
@click.argument("title")
@click.argument("description", required=False, default="")
@click.pass_context
def classify(ctx: click.Context, title: str, description: str):
    """Classify a single title/description pair."""
    from intake.application import ClassificationService
    from intake.infrastructure import RulesConfigManager

    rules_manager = RulesConfigManager()
    try:
        rules_manager.load(ctx.obj["settings"].rules_config_path)
    except ApplicationException as e:
        _fail(e.message)
        return

    result = ClassificationService(rules_manager).classify(title, description)
    _echo_json(result.to_dict())
