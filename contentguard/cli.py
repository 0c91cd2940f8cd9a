"""contentguard CLI — screen prompts and administer the violation ledger."""

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from contentguard import __version__
from contentguard.config import build_services, configure_logging, load_config
from contentguard.moderation.errors import ModerationError
from contentguard.moderation.models import Severity

console = Console()

_SEVERITY_STYLE = {
    "low": "dim",
    "medium": "yellow",
    "high": "red",
    "critical": "bold red",
}


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default=None, help="Path to a YAML config file")
@click.pass_context
def main(ctx: click.Context, config_path: str | None):
    """contentguard — prompt moderation with violation tracking.

    Screens free text against the blocklist and manages the append-only
    ledger of user violations.
    """
    try:
        config = load_config(config_path)
        configure_logging(config.log_level)
        ctx.obj = build_services(config)
    except ModerationError as e:
        raise click.ClickException(str(e))


def _violation_table(title: str, violations) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Created")
    table.add_column("User", style="cyan")
    table.add_column("Severity")
    table.add_column("Action")
    table.add_column("Terms")
    for v in violations:
        style = _SEVERITY_STYLE[v.severity.value]
        table.add_row(
            v.id,
            v.created_at[:19],
            escape(v.user_id),
            f"[{style}]{v.severity.value}[/]",
            v.action.value,
            escape(", ".join(v.detected_terms)[:40]),
        )
    return table


# ── Screening ────────────────────────────────────────────────────────


@main.command()
@click.argument("text")
@click.option("--user", "-u", "user_id", default=None, help="Record a violation for this user on a hit")
@click.pass_obj
def check(services, text: str, user_id: str | None):
    """Check TEXT against the content filter.

    Exits with status 1 when the text is rejected.
    """
    result = services.filter.check_content(text)
    if not result.is_inappropriate:
        console.print("[green]v[/] Content allowed")
        return

    console.print(f"[red]x[/] {result.reason}")
    console.print(f"  Matched terms: {escape(', '.join(result.found_terms)) or '-'}")
    console.print(f"  Matched patterns: {result.found_pattern_count}")
    console.print(f"  Try instead: {', '.join(result.suggestions)}")

    if user_id:
        try:
            outcome = services.filter.record_violation(user_id, text, result.found_terms)
        except ModerationError as e:
            raise click.ClickException(f"Could not record violation: {e}")
        console.print(
            f"  Recorded [bold]{outcome.severity.value}[/] violation "
            f"{outcome.violation.id}: action [bold]{outcome.action.value}[/]"
        )
    raise SystemExit(1)


@main.command()
@click.argument("text")
@click.pass_obj
def sanitize(services, text: str):
    """Print TEXT with blocklisted terms removed."""
    console.print(services.filter.sanitize_text(text), markup=False, highlight=False)


# ── Ledger ───────────────────────────────────────────────────────────


@main.command()
@click.argument("user_id")
@click.option("--limit", "-n", default=10, help="Number of recent violations to show")
@click.pass_obj
def history(services, user_id: str, limit: int):
    """Show the violation history and standing of USER_ID."""
    report = services.admin.user_report(user_id, limit=limit)
    status = "[red]BLOCKED[/]" if report.should_block else "[green]allowed[/]"
    console.print(
        Panel(
            f"Last 24h: {report.count_24h}   Last 7d: {report.count_7d}   Status: {status}",
            title=f"User {escape(user_id)}",
        )
    )
    if report.violations:
        console.print(_violation_table("Recent violations", report.violations))
    else:
        console.print("[yellow]No violations recorded.[/]")


@main.command()
@click.option("--user", "-u", "user_id", default=None, help="Filter by user")
@click.option("--severity", "-s", default=None, type=click.Choice([s.value for s in Severity]))
@click.option("--resolved/--unresolved", default=None, help="Filter by resolution state")
@click.option("--page", default=1, help="Page number")
@click.option("--limit", "-n", default=20, help="Page size")
@click.pass_obj
def violations(services, user_id, severity, resolved, page: int, limit: int):
    """List recorded violations, newest first."""
    result = services.admin.list_violations(
        user_id=user_id,
        severity=Severity(severity) if severity else None,
        resolved=resolved,
        page=page,
        limit=limit,
    )
    if not result.violations:
        console.print("[yellow]No matching violations.[/]")
        return
    console.print(
        _violation_table(
            f"Violations (page {result.page}/{result.pages}, {result.total} total)",
            result.violations,
        )
    )
    counts = ", ".join(f"{k}: {v}" for k, v in sorted(result.by_severity.items()))
    console.print(f"  By severity: {counts}")


@main.command()
@click.argument("violation_id")
@click.option("--by", "resolved_by", default="admin", help="Who resolved it")
@click.option("--notes", default="", help="Resolution notes")
@click.pass_obj
def resolve(services, violation_id: str, resolved_by: str, notes: str):
    """Mark VIOLATION_ID as resolved."""
    try:
        services.admin.resolve_violation(violation_id, resolved_by, notes)
    except ModerationError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]v[/] Violation {escape(violation_id)} resolved")


@main.command()
@click.argument("user_id")
@click.option("--reason", "-r", default="", help="Why the user is blocked")
@click.option("--by", "blocked_by", default="admin", help="Who blocked the user")
@click.pass_obj
def block(services, user_id: str, reason: str, blocked_by: str):
    """Manually suspend USER_ID."""
    try:
        violation = services.admin.block_user(user_id, reason, blocked_by)
    except ModerationError as e:
        raise click.ClickException(str(e))
    console.print(f"[red]Blocked[/] {escape(user_id)} (violation {violation.id})")


@main.command()
@click.argument("user_id")
@click.option("--reason", "-r", default="", help="Why the user is unblocked")
@click.option("--by", "unblocked_by", default="admin", help="Who unblocked the user")
@click.pass_obj
def unblock(services, user_id: str, reason: str, unblocked_by: str):
    """Resolve every open violation of USER_ID."""
    try:
        count = services.admin.unblock_user(user_id, reason, unblocked_by)
    except ModerationError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]Unblocked[/] {escape(user_id)} ({count} violations resolved)")


@main.command()
@click.option("--days", "-d", default=7, help="Size of the window in days")
@click.pass_obj
def stats(services, days: int):
    """Daily violation counts and top violators."""
    result = services.admin.violation_stats(days)
    if not result.daily:
        console.print(f"[yellow]No violations in the last {days} days.[/]")
        return

    table = Table(title=f"Violations, last {days} days")
    table.add_column("Date")
    for s in Severity:
        table.add_column(s.value, justify="right")
    for day, counts in result.daily.items():
        table.add_row(day, *(str(counts.get(s.value, 0)) for s in Severity))
    console.print(table)

    if result.top_violators:
        console.print("\n[bold]Top unresolved violators:[/]")
        for v in result.top_violators:
            console.print(f"  [cyan]{escape(v.user_id)}[/] {v.count} (latest {v.latest_violation[:19]})")


if __name__ == "__main__":
    main()
