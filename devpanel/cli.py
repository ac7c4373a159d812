"""
Command-line interface for the developer panel plugin host.
"""

import asyncio
import json
import logging
import random
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from devpanel.analyzers import LintPlugin
from devpanel.config import Settings, SUPPORTED_LINT_FILE_TYPES
from devpanel.errors import PluginError
from devpanel.integrations import GitHubPlugin
from devpanel.llm import Summarizer
from devpanel.plugins import PluginManager
from devpanel.runners import TestRunnerPlugin
from devpanel.runners.test_runner_plugin import SAMPLE_TEST_FILES


app = typer.Typer(help="Developer panel - GitHub, lint and test runner plugins")
console = Console()


async def create_plugin_manager(settings: Optional[Settings] = None,
                                rng: Optional[random.Random] = None) -> PluginManager:
    """Build a manager with the bundled plugins registered and activated."""
    settings = settings or Settings.from_env()
    manager = PluginManager(settings=settings)

    for plugin in (GitHubPlugin(settings), LintPlugin(), TestRunnerPlugin(rng=rng)):
        manager.register_plugin(plugin)

    for plugin_id in list(manager.plugins):
        try:
            await manager.activate_plugin(plugin_id)
        except PluginError as e:
            console.print(f"[red]Could not activate {plugin_id}: {e}[/red]")

    return manager


def _configure_logging(verbose: bool, settings: Settings):
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _collect_sources(paths: List[str]) -> List[dict]:
    files = []
    for path_str in paths:
        path = Path(path_str)
        if path.is_dir():
            candidates = sorted(p for p in path.rglob("*") if p.suffix in SUPPORTED_LINT_FILE_TYPES)
        elif path.is_file():
            candidates = [path]
        else:
            console.print(f"[red]Path not found: {path}[/red]")
            raise typer.Exit(code=1)

        for candidate in candidates:
            files.append({
                "name": candidate.name,
                "path": str(candidate),
                "content": candidate.read_text(encoding="utf-8", errors="replace")
            })
    return files


@app.command()
def plugins(verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")):
    """List the bundled plugins and their status."""
    settings = Settings.from_env()
    _configure_logging(verbose, settings)
    manager = asyncio.run(create_plugin_manager(settings))

    table = Table(title="Plugins")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Status", style="green")

    for info in manager.get_all_plugins():
        table.add_row(info.id, info.name, info.category, info.status.value if info.status else "-")

    console.print(table)


@app.command()
def lint(
    paths: List[str] = typer.Argument(..., help="Files or directories to lint"),
    output: Optional[str] = typer.Option(None, help="Write results as JSON to this file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Lint JavaScript/TypeScript sources."""
    settings = Settings.from_env()
    _configure_logging(verbose, settings)
    files = _collect_sources(paths)
    results, stats = asyncio.run(_lint_async(files, settings))

    for result in results:
        if not result["issues"]:
            continue
        table = Table(title=result["filename"])
        table.add_column("Line", justify="right")
        table.add_column("Col", justify="right")
        table.add_column("Severity")
        table.add_column("Rule", style="cyan")
        table.add_column("Message")
        for issue in result["issues"]:
            color = "red" if issue["severity"] == "error" else "yellow"
            table.add_row(str(issue["line"]), str(issue["column"]),
                          f"[{color}]{issue['severity']}[/{color}]", issue["rule"], issue["message"])
        console.print(table)

    console.print(Panel(
        f"Files: {stats['totalFiles']}  Issues: {stats['totalIssues']}  "
        f"Errors: {stats['totalErrors']}  Warnings: {stats['totalWarnings']}",
        title="Lint Summary"
    ))

    if output:
        Path(output).write_text(json.dumps({"results": results, "stats": stats}, indent=2))
        console.print(f"[green]Results saved to: {output}[/green]")

    if stats["totalErrors"]:
        raise typer.Exit(code=1)


async def _lint_async(files: List[dict], settings: Settings):
    manager = await create_plugin_manager(settings)
    results = await manager.execute_action("eslint", "lintFiles", {"files": files})
    stats = await manager.execute_action("eslint", "getStats")
    return results, stats


@app.command()
def test(
    paths: Optional[List[str]] = typer.Argument(None, help="Test files to run (defaults to bundled samples)"),
    seed: Optional[int] = typer.Option(None, help="Seed for reproducible simulated runs"),
    framework: str = typer.Option("jest", help="Test framework (jest, mocha, vitest)"),
    fast: bool = typer.Option(False, "--fast", help="Skip the simulated execution delay"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Run a simulated test session."""
    settings = Settings.from_env()
    _configure_logging(verbose, settings)
    files = _collect_sources(paths) if paths else [dict(f) for f in SAMPLE_TEST_FILES]
    rng = random.Random(seed) if seed is not None else None

    summary = asyncio.run(_test_async(files, settings, rng, framework, fast))

    table = Table(title=f"Test Summary ({framework})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key in ("totalFiles", "totalTests", "passed", "failed", "duration", "passRate"):
        table.add_row(key, str(summary[key]))
    console.print(table)

    if summary["failed"]:
        raise typer.Exit(code=1)


async def _test_async(files: List[dict], settings: Settings, rng: Optional[random.Random],
                      framework: str, fast: bool):
    manager = await create_plugin_manager(settings, rng=rng)
    await manager.execute_action("testing", "setFramework", {"framework": framework})
    if fast:
        await manager.update_plugin_settings("testing", {"simulatedDelay": (0, 0)})
    return await manager.execute_action("testing", "runTests", {"files": files})


def _repository_command(action: str, owner: str, repo: str, limit: int, verbose: bool):
    settings = Settings.from_env()
    _configure_logging(verbose, settings)

    async def run():
        manager = await create_plugin_manager(settings)
        return await manager.execute_action("github", action, {
            "owner": owner, "repo": repo, "options": {"limit": limit}
        })

    try:
        return asyncio.run(run())
    except PluginError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def commits(
    owner: str = typer.Argument(..., help="Repository owner"),
    repo: str = typer.Argument(..., help="Repository name"),
    limit: int = typer.Option(10, help="Maximum number of commits"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Show recent commits of a GitHub repository."""
    records = _repository_command("getCommits", owner, repo, limit, verbose)

    table = Table(title=f"Commits in {owner}/{repo}")
    table.add_column("Date")
    table.add_column("Author", style="cyan")
    table.add_column("Message")
    for record in records:
        commit = record.get("commit", {})
        author = commit.get("author") or {}
        message = (commit.get("message") or "").splitlines()
        table.add_row((author.get("date") or "")[:19], author.get("name", ""), message[0] if message else "")
    console.print(table)


@app.command()
def issues(
    owner: str = typer.Argument(..., help="Repository owner"),
    repo: str = typer.Argument(..., help="Repository name"),
    limit: int = typer.Option(10, help="Maximum number of issues"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Show open issues of a GitHub repository."""
    records = _repository_command("getIssues", owner, repo, limit, verbose)

    table = Table(title=f"Issues in {owner}/{repo}")
    table.add_column("#", justify="right")
    table.add_column("State")
    table.add_column("Title")
    for record in records:
        table.add_row(str(record.get("number", "")), record.get("state", ""), record.get("title", ""))
    console.print(table)


@app.command()
def summarize(
    path: str = typer.Argument(..., help="Text file to summarize"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Summarize a text file with the configured LLM provider."""
    settings = Settings.from_env()
    _configure_logging(verbose, settings)

    file_path = Path(path)
    if not file_path.is_file():
        console.print(f"[red]File not found: {file_path}[/red]")
        raise typer.Exit(code=1)

    summarizer = Summarizer.from_env(settings)
    summary = asyncio.run(summarizer.summarize(file_path.read_text(encoding="utf-8")))
    console.print(Panel(summary, title="Summary"))


if __name__ == "__main__":
    app()
