"""sheetsync CLI — all commands."""

from typing import Annotated

import tomlkit
import typer
from rich import print as rprint
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sheetsync.body import compose
from sheetsync.credentials import resolve_credential
from sheetsync.exceptions import CredentialError, RunAborted, SourceAccessError, TrackerError
from sheetsync.labels import LabelRegistry
from sheetsync.logging import setup_logging
from sheetsync.models import RawRow, RunSummary
from sheetsync.normalize import normalize
from sheetsync.pipeline import SyncPipeline
from sheetsync.providers.base import TicketTracker
from sheetsync.providers.github import GitHubTracker
from sheetsync.settings import CONFIG_PATH, SyncSettings, _list_profiles, get_settings
from sheetsync.sources.sheets import SheetsSource

app = typer.Typer(help="sheetsync: create GitHub issues from Google Sheets rows", no_args_is_help=True)

# Exit code for failures before any row was attempted
EXIT_PRECONDITION = 2

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-P", help="Profile name from ~/.config/sheetsync/config.toml"),
]
LogLevelOpt = Annotated[
    str | None,
    typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR"),
]


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def get_tracker(settings: SyncSettings) -> TicketTracker:
    try:
        return GitHubTracker(settings)
    except TrackerError as exc:
        rprint(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(EXIT_PRECONDITION) from exc


def get_source(settings: SyncSettings) -> SheetsSource:
    try:
        return SheetsSource(resolve_credential(settings))
    except CredentialError as exc:
        rprint(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(EXIT_PRECONDITION) from exc


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _print_sharing_help(sheet_id: str) -> None:
    rprint("[red]No access to the Google Sheet.[/red] To grant it:")
    rprint(f"  1. Open https://docs.google.com/spreadsheets/d/{sheet_id}")
    rprint("  2. Click Share")
    rprint("  3. Add the account (or service account email) behind your Google credentials")
    rprint("  4. Give it Viewer access")


def _fetch_rows(source: SheetsSource, settings: SyncSettings) -> list[RawRow]:
    """Access check and row fetch. Failures here end the run before any row is attempted."""
    sheet_id = settings.sheet_id or ""
    try:
        if not source.check_access(sheet_id):
            _print_sharing_help(sheet_id)
            raise typer.Exit(EXIT_PRECONDITION)
        return source.fetch_rows(sheet_id, settings.sheet_range)
    except SourceAccessError as exc:
        if exc.denied:
            _print_sharing_help(sheet_id)
        else:
            rprint(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(EXIT_PRECONDITION) from exc


def _resolve_project(settings: SyncSettings, tracker: TicketTracker) -> str | None:
    if settings.github_project_title:
        return settings.github_project_title
    if settings.github_project_id and settings.repo_owner:
        try:
            title = tracker.resolve_project_title(settings.github_project_id, settings.repo_owner)
        except TrackerError as exc:
            rprint(f"[yellow]Warning:[/yellow] project lookup failed: {escape(str(exc))}")
            title = None
        if title is None:
            rprint(
                f"[yellow]Warning:[/yellow] project {settings.github_project_id} not found, "
                "issues will not be added to a project. Prefer github_project_title."
            )
        return title
    return None


def _warn_if_no_project_scope(tracker: TicketTracker) -> None:
    try:
        usable = tracker.check_capability()
    except TrackerError as exc:
        rprint(f"[yellow]Warning:[/yellow] could not check token scopes: {escape(str(exc))}")
        return
    if not usable:
        rprint("[yellow]Warning:[/yellow] the GitHub token does not report the `project` scope.")
        rprint("  Issues are still created; project attachment may fall back to a plain issue.")
        rprint("  To enable it run: gh auth refresh -s project")


def _print_summary(summary: RunSummary) -> None:
    table = Table(title="Sync Summary")
    table.add_column("Row", style="cyan")
    table.add_column("Title")
    table.add_column("Result")
    for outcome in summary.outcomes:
        if outcome.succeeded:
            result = f"[green]{outcome.ticket_reference}[/green]"
            if outcome.used_fallback:
                result += " [dim](no project)[/dim]"
        else:
            result = f"[red]{escape(outcome.error_detail or '')}[/red]"
        table.add_row(str(outcome.row_number or "—"), escape(outcome.title or ""), result)
    rprint(table)

    rprint(
        f"Succeeded: {summary.success_count}  Failed: {summary.error_count}  "
        f"Total: {summary.total_count}  Skipped (no title): {summary.skipped_count}"
    )
    match summary.status:
        case "success":
            rprint("[green]✓[/green] All issues were created")
        case "partial":
            rprint("[yellow]Some issues could not be created[/yellow]")
        case "failed":
            rprint("[red]No issue could be created[/red]")
        case _:
            rprint("[dim]No rows to process[/dim]")


def _preview(rows: list[RawRow], registry: LabelRegistry) -> None:
    for row in rows:
        if not row.has_title:
            continue
        request = normalize(row)
        validation = registry.validate(request.labels)
        if not validation.is_valid:
            rprint(f"[yellow]Row {row.row_number}: unknown labels {', '.join(validation.invalid_labels)}[/yellow]")
            request = request.with_labels(validation.valid_labels)
        labels = ", ".join(request.labels) or "none"
        rprint(
            Panel(
                escape(compose(request)),
                title=escape(f"Row {row.row_number}: {request.title}"),
                subtitle=escape(f"labels: {labels}"),
            )
        )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("sync")
def sync(
    profile: ProfileOpt = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Print issue bodies without creating issues")] = False,
    project: Annotated[
        str | None,
        typer.Option("--project", help="Project title to add issues to (overrides the profile)"),
    ] = None,
    log_level: LogLevelOpt = None,
) -> None:
    """Create one GitHub issue per sheet row."""
    settings = get_settings(profile=profile)
    setup_logging(log_level or settings.log_level)

    source = get_source(settings)
    rows = _fetch_rows(source, settings)
    if not rows:
        rprint("[yellow]No rows to process.[/yellow]")
        return
    rprint(f"[green]✓[/green] Fetched {len(rows)} row(s)")

    tracker = get_tracker(settings)
    repo = settings.github_repo or ""
    try:
        registry = LabelRegistry.build(tracker.list_labels(repo))
    except TrackerError as exc:
        rprint(f"[red]Could not fetch labels of {repo}: {escape(str(exc))}[/red]")
        raise typer.Exit(EXIT_PRECONDITION) from exc
    rprint(f"[green]✓[/green] Loaded {len(registry)} label(s) from {repo}")

    if dry_run:
        _preview(rows, registry)
        return

    project_name = project or _resolve_project(settings, tracker)
    if project_name:
        _warn_if_no_project_scope(tracker)

    pipeline = SyncPipeline(tracker, repo, pacing_interval=settings.pacing_interval)
    try:
        summary = pipeline.run(rows, registry, project=project_name)
    except RunAborted as exc:
        _print_summary(exc.summary)
        rprint(f"[red]Run aborted at row {exc.row_number}: {escape(repr(exc.__cause__))}[/red]")
        raise typer.Exit(1) from exc

    _print_summary(summary)
    if summary.error_count:
        raise typer.Exit(1)


@app.command("labels")
def labels_cmd(profile: ProfileOpt = None) -> None:
    """List the labels of the configured repository."""
    settings = get_settings(profile=profile)
    tracker = get_tracker(settings)
    try:
        registry = LabelRegistry.build(tracker.list_labels(settings.github_repo or ""))
    except TrackerError as exc:
        rprint(f"[red]Could not fetch labels of {settings.github_repo}: {escape(str(exc))}[/red]")
        raise typer.Exit(EXIT_PRECONDITION) from exc

    table = Table(title=f"Labels of {settings.github_repo}")
    table.add_column("Name", style="cyan")
    table.add_column("Color")
    table.add_column("Description", style="dim")
    for label in registry:
        table.add_row(label.name, f"#{label.color}" if label.color else "—", label.description or "")

    rprint(table)


@app.command("doctor")
def doctor(profile: ProfileOpt = None) -> None:
    """Troubleshoot the Google Sheets connection."""
    rprint("[bold]Google Sheets troubleshooting[/bold]")

    rprint("\n1. Settings")
    settings = get_settings(profile=profile)
    rprint(f"   Sheet ID: {settings.sheet_id}")
    rprint(f"   Range: {settings.sheet_range}")

    rprint("\n2. Credentials")
    try:
        credential = resolve_credential(settings)
    except CredentialError as exc:
        rprint(f"   [red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(EXIT_PRECONDITION) from exc
    rprint(f"   [green]✓[/green] Using strategy: {credential.strategy}")

    rprint("\n3. Access check")
    source = SheetsSource(credential)
    sheet_id = settings.sheet_id or ""
    try:
        accessible = source.check_access(sheet_id)
    except SourceAccessError as exc:
        rprint(f"   [red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(EXIT_PRECONDITION) from exc
    if not accessible:
        rprint("   [red]✗[/red] Connection test failed\n")
        _print_sharing_help(sheet_id)
        raise typer.Exit(EXIT_PRECONDITION)
    rprint("   [green]✓[/green] Connection test passed")

    rprint("\n4. Fetch test")
    try:
        rows = source.fetch_rows(sheet_id, settings.sheet_range)
    except SourceAccessError as exc:
        rprint(f"   [red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(EXIT_PRECONDITION) from exc
    rprint(f"   Rows fetched: {len(rows)}")
    if rows:
        rprint(f"   First row title: {rows[0].title}")


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings(profile=profile)

    def mask(val: str | None, prefix: str = "") -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"{prefix}...{val[-5:]}"

    def secret(val) -> str | None:
        return val.get_secret_value() if val else None

    not_set = "[dim](not set)[/dim]"
    table = Table(title="sheetsync Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_profile", settings.default_profile or not_set)
    table.add_row("sheet_id", settings.sheet_id or not_set)
    table.add_row("sheet_range", settings.sheet_range)
    table.add_row("google_auth", settings.google_auth)
    table.add_row("google_access_token", mask(secret(settings.google_access_token), prefix="ya29"))
    table.add_row("google_api_key", mask(secret(settings.google_api_key), prefix="AIza"))
    table.add_row("google_credentials_path", str(settings.google_credentials_path or "") or not_set)
    table.add_row("google_service_account_email", settings.google_service_account_email or not_set)
    table.add_row("google_service_account_private_key", mask(secret(settings.google_service_account_private_key)))
    table.add_row("google_service_account_key", mask(secret(settings.google_service_account_key)))
    table.add_row("github_token", mask(secret(settings.github_token), prefix="ghp_"))
    table.add_row("github_auth", settings.github_auth)
    table.add_row("github_repo", settings.github_repo or not_set)
    table.add_row("github_project_title", settings.github_project_title or not_set)
    table.add_row("github_project_id", settings.github_project_id or not_set)
    table.add_row("pacing_interval", f"{settings.pacing_interval:g}s")
    table.add_row("log_level", settings.log_level)

    rprint(table)


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/sheetsync/config.toml."""
    if not CONFIG_PATH.exists():
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        doc = tomlkit.document()
        doc.add("default_profile", profile)
        CONFIG_PATH.write_text(tomlkit.dumps(doc))
        rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')
        return

    doc = tomlkit.load(CONFIG_PATH.open())
    profiles = _list_profiles(doc)
    if profile not in profiles:
        rprint(f"[red]Profile '{profile}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}[/red]")
        raise typer.Exit(1)

    doc["default_profile"] = profile
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')
