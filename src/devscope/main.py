"""devscope CLI - AI-assisted GitHub repository and profile analysis.

Usage:
    devscope repo <github-repo-url> [options]
    devscope repo https://github.com/pallets/flask --export-md glossary.md
    devscope profile https://github.com/octocat
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import Settings
from .errors import AnalysisError
from .export import glossary_markdown
from .logging import configure_logging
from .metrics import BADGE_CATALOG
from .orchestrator import (
    AnalysisResult,
    ProfileAnalysisResult,
    analyze_profile,
    analyze_repo,
)

console = Console()


def _settings(model: str | None, github_token: str | None, api_key: str | None) -> Settings:
    """Environment settings with command-line overrides applied."""
    try:
        settings = Settings.from_env()
    except AnalysisError as e:
        raise click.ClickException(e.user_message)
    overrides = {
        key: value
        for key, value in (
            ("model", model),
            ("github_token", github_token),
            ("gemini_api_key", api_key),
        )
        if value
    }
    return dataclasses.replace(settings, **overrides)


def _run(coro, description: str, quiet: bool):
    """Run an analysis coroutine behind a spinner, mapping failures to ClickException."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console if not quiet else Console(quiet=True),
        transient=True,
    ) as progress:
        progress.add_task(description, total=None)
        try:
            return asyncio.run(coro)
        except AnalysisError as e:
            raise click.ClickException(e.user_message)


def _model_options(f):
    f = click.option("--api-key", default=None, help="Gemini API key (default: $GEMINI_API_KEY)")(f)
    f = click.option("--github-token", default=None, help="GitHub token (default: $GITHUB_TOKEN)")(f)
    f = click.option("--model", "-m", default=None, help="Gemini model name")(f)
    return f


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Also write logs to this file")
def cli(verbose: bool, log_file: Path | None):
    """devscope - AI-assisted analysis of GitHub repositories and profiles.

    Fetches facts from the GitHub API, asks a Gemini model for a structured
    assessment, and merges both into one report.
    """
    configure_logging(verbose=verbose, log_file=log_file)


@cli.command()
@click.argument("url")
@_model_options
@click.option("--json-only", is_flag=True, help="Output raw JSON to stdout (for piping)")
@click.option("--export-md", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write the glossary as Markdown")
def repo(url: str, model: str | None, github_token: str | None, api_key: str | None, json_only: bool, export_md: Path | None):
    """Analyze a GitHub repository.

    Examples:

        devscope repo https://github.com/pallets/flask

        devscope repo https://github.com/pallets/flask --json-only
    """
    settings = _settings(model, github_token, api_key)
    result = _run(analyze_repo(url, settings), f"Analyzing {url}...", json_only)

    if json_only:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_repo_result(result)

    if export_md:
        export_md.write_text(glossary_markdown(result.repo_name, result.items))
        if not json_only:
            console.print(f"\n[green]Glossary written to {export_md}[/]")


@cli.command()
@click.argument("url")
@_model_options
@click.option("--json-only", is_flag=True, help="Output raw JSON to stdout (for piping)")
def profile(url: str, model: str | None, github_token: str | None, api_key: str | None, json_only: bool):
    """Analyze a GitHub developer profile.

    Example:

        devscope profile https://github.com/octocat
    """
    settings = _settings(model, github_token, api_key)
    result = _run(analyze_profile(url, settings), f"Analyzing {url}...", json_only)

    if json_only:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_profile_result(result)


@cli.command()
def badges():
    """List the badges a profile can earn."""
    table = Table(show_header=True)
    table.add_column("Id", style="bold")
    table.add_column("Badge")
    table.add_column("Requirement")
    for spec in BADGE_CATALOG:
        table.add_row(spec.id.value, spec.name, spec.description)
    console.print(table)


def _print_degraded(notes) -> None:
    if not notes:
        return
    console.print()
    console.print("[bold yellow]Partial data:[/]")
    for note in notes:
        console.print(f"  [yellow]{note.source}[/]: {note.reason}")


def _print_repo_result(result: AnalysisResult) -> None:
    console.print()
    console.print(Panel.fit(
        f"[bold cyan]{result.repo_name}[/]\n"
        f"Commits: {result.commit_count:,} | Rating: {result.star_rating:.1f}/5",
        border_style="cyan",
    ))

    table = Table(title="Repository Analysis", show_header=False, border_style="dim")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    if result.tech_stack:
        table.add_row("Tech stack", ", ".join(result.tech_stack))
    table.add_row("Structure", result.file_structure_summary)
    table.add_row("Sampled files", str(len(result.sampled_files)))
    console.print(table)

    if result.items:
        glossary = Table(title="Glossary", show_header=True)
        glossary.add_column("Name", style="bold")
        glossary.add_column("Type")
        glossary.add_column("Path", style="dim")
        for item in result.items:
            glossary.add_row(item.name, item.kind, item.path)
        console.print(glossary)

    _print_degraded(result.degraded)


def _print_profile_result(result: ProfileAnalysisResult) -> None:
    console.print()
    console.print(Panel.fit(
        f"[bold cyan]{result.name or result.login}[/] (@{result.login})\n"
        f"{result.profile_summary}\n\n"
        f"Health: {result.health_score:.0f}/100 | Rating: {result.star_rating:.1f}/5 | "
        f"Stars: {result.total_stars:,} | Followers: {result.followers:,}",
        border_style="cyan",
    ))

    badge_table = Table(title="Badges", show_header=False, border_style="dim")
    badge_table.add_column("Earned")
    badge_table.add_column("Badge", style="bold")
    badge_table.add_column("Requirement", style="dim")
    for badge in result.badges:
        badge_table.add_row("[green]yes[/]" if badge.earned else "[dim]no[/]", badge.name, badge.description)
    console.print(badge_table)

    if result.top_repos:
        repos = Table(title="Top Repositories", show_header=True)
        repos.add_column("Repository", style="bold")
        repos.add_column("Stars", justify="right")
        repos.add_column("Quality", justify="right")
        repos.add_column("Pitch")
        for info in result.top_repos:
            repos.add_row(info.name, f"{info.star_count:,}", f"{info.quality_score:.0f}", info.pitch)
        console.print(repos)

    if result.language_distribution:
        langs = ", ".join(
            f"{lang} ({count})"
            for lang, count in sorted(result.language_distribution.items(), key=lambda x: -x[1])
        )
        console.print(f"\n[bold]Languages:[/] {langs}")

    console.print(f"[bold]Contributions (last year):[/] {result.calendar.total_count:,}")

    if result.main_expertise:
        console.print(f"[bold]Expertise:[/] {', '.join(result.main_expertise)}")

    if result.suggestions:
        console.print()
        console.print("[bold]Suggestions:[/]")
        for s in result.suggestions:
            console.print(f"  - {s}")

    _print_degraded(result.degraded)


if __name__ == "__main__":
    cli()
