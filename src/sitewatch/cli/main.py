"""Main CLI application using Click framework."""

import asyncio
import functools
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import (
    ConfigError,
    ConfigLoader,
    get_settings,
    validate_target_url,
)
from ..monitor.orchestrator import create_orchestrator
from ..notification import NotificationError, NtfyNotifier
from ..scraper.hashing import SUPPORTED_HASH_TYPES, ContentHasher
from ..scraper.normalizer import HtmlNormalizer
from ..scraper.types import ChangeOutcome, ScrapingError
from ..storage import StateStore, StorageError
from ..utils.logging import get_structured_logger, setup_logging
from .types import CLIContext, CLIError, CommandResult

console = Console()
# Errors go to stderr; stdout carries only the check report
err_console = Console(stderr=True)
logger = get_structured_logger(__name__)

USAGE_HINT = (
    "Usage: MONITOR_URL=https://example.com NTFY_TOPIC=my-topic sitewatch check"
)
FINGERPRINT_PREFIX = 8


def async_command(f):
    """Decorator to run async functions in Click commands."""

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return asyncio.run(f(*args, **kwargs))
        except KeyboardInterrupt:
            err_console.print("❌ Operation cancelled by user", style="red")
            sys.exit(1)

    return wrapper


def handle_result(result: CommandResult, ctx: CLIContext) -> None:
    """Handle command result output."""
    if result.success:
        if result.message:
            console.print(f"✅ {escape(result.message)}", style="green")
        if result.data and ctx.verbose:
            console.print_json(data=result.data)
    else:
        err_console.print(f"❌ {escape(result.message)}", style="red")
        if result.data and ctx.debug:
            err_console.print_json(data=result.data)

    if not result.success:
        sys.exit(result.exit_code)


def short(fingerprint: Optional[str]) -> str:
    return f"{(fingerprint or '')[:FINGERPRINT_PREFIX]}..."


def resolve_target(url: Optional[str], topic: Optional[str]) -> tuple[str, str]:
    """Check the target URL and topic given on the command line or in settings."""
    if not url:
        raise CLIError("MONITOR_URL environment variable or URL argument is required")
    if not topic:
        raise CLIError("NTFY_TOPIC environment variable or --topic option is required")

    try:
        validate_target_url(url)
    except ConfigError as e:
        raise CLIError(str(e)) from e

    return url, topic


def report_outcome(outcome: ChangeOutcome, topic: str) -> None:
    """Print the operator report for a finished check."""
    if outcome.is_first_run:
        fingerprint = short(outcome.current_fingerprint)
        console.print(f"First run - baseline fingerprint stored: {fingerprint}")
    elif outcome.changed:
        console.print("CHANGE DETECTED!", style="bold red")
        console.print(f"  Previous fingerprint: {short(outcome.previous_fingerprint)}")
        console.print(f"  Current fingerprint:  {short(outcome.current_fingerprint)}")
        console.print(f"  Notification sent to topic: {escape(topic)}")
    else:
        console.print(
            f"No change detected (fingerprint: {short(outcome.current_fingerprint)})"
        )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.option("--json-logs", is_flag=True, help="Emit log records as JSON")
@click.pass_context
def cli(ctx, verbose: bool, debug: bool, json_logs: bool) -> None:
    """sitewatch - detect meaningful changes to a web page."""
    try:
        settings = get_settings()
    except ConfigError as e:
        err_console.print(f"❌ {escape(str(e))}", style="red")
        sys.exit(1)

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = settings.log_level
    setup_logging(
        log_level=log_level,
        json_logs=json_logs or settings.json_logs,
        include_caller_info=debug,
    )

    ctx.obj = CLIContext(settings=settings, verbose=verbose, debug=debug)


@cli.command()
@click.argument("url", required=False)
@click.option("--topic", help="ntfy topic to notify (defaults to NTFY_TOPIC)")
@click.option(
    "--timeout-ms",
    type=click.IntRange(min=1),
    help="Fetch timeout in milliseconds (defaults to FETCH_TIMEOUT_MS)",
)
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False),
    help="Path of the state file (defaults to STATE__PATH)",
)
@click.pass_obj
@async_command
async def check(
    ctx: CLIContext,
    url: Optional[str],
    topic: Optional[str],
    timeout_ms: Optional[int],
    state_file: Optional[str],
) -> None:
    """Check the page once and notify if it changed."""
    settings = ctx.settings

    try:
        url, topic = resolve_target(
            url or settings.monitor_url, topic or settings.ntfy_topic
        )
    except CLIError as e:
        err_console.print(f"❌ {escape(str(e))}", style="red")
        err_console.print(USAGE_HINT)
        sys.exit(1)

    now = datetime.now(timezone.utc).isoformat()
    console.print(escape(f"[{now}] Checking: {url}"))

    try:
        orchestrator = create_orchestrator(settings, state_path=state_file)
        outcome = await orchestrator.run_once(
            url, topic, timeout_ms or settings.fetch_timeout_ms
        )
    except (ScrapingError, NotificationError, StorageError, ConfigError) as e:
        logger.error("Check failed", url=url, error=str(e))
        err_console.print("❌ Monitor failed:", style="red")
        err_console.print(f"  {escape(str(e))}")
        sys.exit(1)

    report_outcome(outcome, topic)

    if ctx.verbose:
        console.print_json(data=outcome.to_dict())


@cli.command("test-notify")
@click.option("--topic", help="ntfy topic to notify (defaults to NTFY_TOPIC)")
@click.pass_obj
@async_command
async def notify_test(ctx: CLIContext, topic: Optional[str]) -> None:
    """Send a test notification."""
    settings = ctx.settings
    topic = topic or settings.ntfy_topic
    if not topic:
        handle_result(
            CommandResult(
                success=False,
                message="NTFY_TOPIC environment variable or --topic option is required",
                exit_code=1,
            ),
            ctx,
        )

    notifier = NtfyNotifier(
        server=settings.notification.server,
        timeout=settings.notification.timeout_seconds,
    )

    try:
        await notifier.send_test_notification(topic)
        result = CommandResult(
            success=True,
            message=f"Test notification sent to topic: {topic}",
            data={"topic": topic, "url": notifier.topic_url(topic)},
        )
    except NotificationError as e:
        result = CommandResult(success=False, message=str(e), exit_code=1)

    handle_result(result, ctx)


@cli.command()
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False),
    help="Path of the state file (defaults to STATE__PATH)",
)
@click.pass_obj
def state(ctx: CLIContext, state_file: Optional[str]) -> None:
    """Show the stored baseline."""
    path = Path(state_file or ctx.settings.state.path)
    stored = StateStore(path).load()

    if stored is None:
        console.print(f"No baseline stored at {escape(str(path))}", style="yellow")
        return

    table = Table(title="Stored baseline")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("URL", stored.url)
    table.add_row("Fingerprint", stored.fingerprint)
    table.add_row("Last checked", stored.last_checked_at.isoformat())
    table.add_row("State file", str(path))
    console.print(table)


@cli.command()
@click.argument("html_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--hash-type",
    type=click.Choice(SUPPORTED_HASH_TYPES, case_sensitive=False),
    help="Digest algorithm (defaults to NORMALIZER__HASH_TYPE)",
)
@click.option(
    "--rules-file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with custom noise rules",
)
@click.pass_obj
def normalize(
    ctx: CLIContext,
    html_file: str,
    hash_type: Optional[str],
    rules_file: Optional[str],
) -> None:
    """Print the canonical text and fingerprint of a local HTML file."""
    normalizer = _build_normalizer(ctx, rules_file)
    hasher = ContentHasher(hash_type or ctx.settings.normalizer.hash_type)

    html = Path(html_file).read_text(encoding="utf-8", errors="replace")
    canonical = normalizer.normalize(html)

    console.print(canonical, markup=False, highlight=False, soft_wrap=True)
    console.print(f"Fingerprint ({hasher.hash_type}): {hasher.fingerprint(canonical)}")


@cli.command()
@click.option(
    "--rules-file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with custom noise rules",
)
@click.pass_obj
def rules(ctx: CLIContext, rules_file: Optional[str]) -> None:
    """List the active noise rules in the order they run."""
    normalizer = _build_normalizer(ctx, rules_file)

    table = Table(title="Noise rules")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="magenta")
    table.add_column("Protects URLs", style="green")

    for position, rule in enumerate(normalizer.rules, start=1):
        table.add_row(
            str(position),
            rule.name,
            rule.category.value,
            "yes" if rule.protect_attributes else "",
        )

    console.print(table)


def _build_normalizer(ctx: CLIContext, rules_file: Optional[str]) -> HtmlNormalizer:
    rules_file = rules_file or ctx.settings.normalizer.rules_file
    if not rules_file:
        return HtmlNormalizer()

    try:
        return ConfigLoader(rules_file).build_normalizer()
    except ConfigError as e:
        handle_result(CommandResult(success=False, message=str(e), exit_code=1), ctx)
