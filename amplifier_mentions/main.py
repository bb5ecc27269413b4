"""amplifier-mentions CLI.

Runs the built-in providers against the local backends: search a project,
inspect the registry, and resolve tokens in text.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import click
from prompt_toolkit import PromptSession
from rich.table import Table

from .completer import MentionCompleter
from .console import console
from .git_state import read_repository_state
from .logging_setup import init_json_logging
from .models import AggregatedSearchResult
from .models import McpServerInfo
from .models import MentionItem
from .models import MentionSearchContext
from .providers import register_builtin_providers
from .providers.tools import parse_tool_name
from .registry import MentionProviderRegistry
from .search.engine import MentionSearchEngine
from .settings import MentionSettings
from .settings import SettingsManager
from .tokens import parse_tokens
from .utils.error_format import escape_markup
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)


def load_settings(project: Path) -> MentionSettings:
    return SettingsManager(amplifier_dir=project / ".amplifier").load()


def build_engine(project: Path, settings: MentionSettings) -> MentionSearchEngine:
    """Registry with the built-in providers, a repository-aware cache and the configured options."""
    registry = MentionProviderRegistry()
    register_builtin_providers(registry, disabled=settings.disabled_providers, cwd=str(project))

    cache = settings.create_cache()
    state = read_repository_state(project)
    if state is not None:
        cache.update_repository_state(state)

    return MentionSearchEngine(registry, cache, settings.search_options())


def tool_context(project: Path, tools: tuple[str, ...]) -> MentionSearchContext:
    """Context for a CLI search; servers of the given tools count as connected."""
    servers = sorted({tool.server_name for tool in filter(None, (parse_tool_name(t) for t in tools))})
    return MentionSearchContext(
        project_path=str(project),
        mcp_tools=list(tools) or None,
        mcp_servers=[McpServerInfo(name=name, status="connected") for name in servers] or None,
    )


def find_owner(registry: MentionProviderRegistry, token: str) -> tuple[str, MentionItem] | None:
    """First provider (by priority) that deserializes the token."""
    for provider in registry.get_all():
        item = provider.deserialize(token)
        if item is not None:
            return provider.id, item
    return None


def _print_warnings(result: AggregatedSearchResult) -> None:
    for warning in result.warnings:
        console.print(f"[yellow]⚠️ {escape_markup(warning)}[/yellow]")


@click.group()
@click.version_option(package_name="amplifier-mentions")
@click.option("--verbose", "-v", is_flag=True, help="Debug-level logging")
@click.option("--log-path", type=click.Path(dir_okay=False), default=None, help="JSONL log file")
@click.pass_context
def cli(ctx, verbose, log_path):
    """Amplifier mentions - search and resolve @-mentions."""
    init_json_logging(log_path, "DEBUG" if verbose else None)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("query", default="")
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project directory",
)
@click.option("--trigger", default="@", show_default=True, help="Trigger character")
@click.option("--limit", "-n", type=click.IntRange(min=0), default=None, help="Maximum number of results")
@click.option("--provider", "provider_ids", multiple=True, help="Only search these provider ids")
@click.option("--tool", "tools", multiple=True, help="MCP tool name (mcp__<server>__<tool>) to offer")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
def search(query, project, trigger, limit, provider_ids, tools, as_json):
    """Search mentionable files, skills, agents and tools."""
    project = project.resolve()
    settings = load_settings(project)
    engine = build_engine(project, settings)

    options = engine.default_options.model_copy(
        update={
            "provider_ids": list(provider_ids),
            "limit": settings.result_limit if limit is None else limit,
        }
    )
    result = asyncio.run(engine.search(trigger, query, tool_context(project, tools), options))

    if as_json:
        payload = {
            "items": [item.model_dump(mode="json", exclude_none=True) for item in result.items],
            "has_more": result.has_more,
            "warnings": result.warnings,
        }
        click.echo(json.dumps(payload, indent=2))
        return

    _print_warnings(result)
    if not result.items:
        console.print(f"[yellow]No matches for '{escape_markup(query)}'.[/yellow]")
        return

    table = Table(title="Mentions", show_header=True, header_style="bold cyan")
    table.add_column("Label", style="green")
    table.add_column("Token", style="magenta")
    table.add_column("Type", style="yellow")
    table.add_column("Description")

    for item in result.items:
        kind = item.metadata.type if item.metadata and item.metadata.type else ""
        table.add_row(
            escape_markup(item.label),
            escape_markup(f"@[{item.id}]"),
            kind,
            escape_markup(item.description or ""),
        )

    console.print(table)
    if result.has_more:
        console.print("[dim]More results available; refine the query.[/dim]")


@cli.command()
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project directory",
)
def providers(project):
    """List registered providers in priority order."""
    project = project.resolve()
    engine = build_engine(project, load_settings(project))

    table = Table(title="Mention Providers", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="green")
    table.add_column("Name")
    table.add_column("Trigger", style="magenta")
    table.add_column("Priority", justify="right")
    table.add_column("Category", style="yellow")
    table.add_column("Hooks", style="dim")

    for provider in engine.registry.get_all():
        hooks = [name for name, enabled in provider.capabilities.model_dump().items() if enabled]
        table.add_row(
            provider.id,
            provider.name,
            escape_markup(provider.trigger.char),
            str(provider.priority),
            provider.category.label,
            ", ".join(hooks),
        )

    console.print(table)


@cli.command()
@click.argument("text")
def parse(text):
    """Show the mention tokens in TEXT and which provider owns each."""
    matches = parse_tokens(text)
    if not matches:
        console.print("[dim]No mention tokens found.[/dim]")
        return

    registry = MentionProviderRegistry()
    register_builtin_providers(registry)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Token", style="magenta")
    table.add_column("Provider", style="green")
    table.add_column("Label")

    for match in matches:
        owner = find_owner(registry, match.token)
        if owner is None:
            table.add_row(escape_markup(match.token), "[dim]literal[/dim]", "")
        else:
            provider_id, item = owner
            table.add_row(escape_markup(match.token), provider_id, escape_markup(item.label))

    console.print(table)


@cli.command()
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project directory",
)
def interactive(project):
    """Type text with @-completion; each entered line is echoed with its mentions."""
    project = project.resolve()
    engine = build_engine(project, load_settings(project))
    asyncio.run(_interactive_loop(engine, project))


async def _interactive_loop(engine: MentionSearchEngine, project: Path) -> None:
    session = PromptSession(
        completer=MentionCompleter(engine, project_path=str(project)),
        complete_while_typing=True,
    )
    console.print("[dim]Type @ to mention a file, skill or agent. Ctrl-D to exit.[/dim]")

    while True:
        try:
            text = await session.prompt_async("> ")
        except (EOFError, KeyboardInterrupt):
            break

        for match in parse_tokens(text):
            owner = find_owner(engine.registry, match.token)
            if owner is None:
                console.print(f"  [dim]{escape_markup(match.token)} (literal)[/dim]")
                continue
            provider_id, item = owner
            console.print(f"  [green]{escape_markup(item.label)}[/green] [dim]{provider_id}[/dim]")

    engine.cancel_all()


def main() -> None:
    try:
        cli()
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e))}")
        logger.exception("Unhandled CLI error")
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
