"""
Command-line interface for the feed rewriter.

Uses Typer to expose one-shot runs, the scheduler loop, provider inspection
and switching, and read-only access to stored articles. Loads a .env file so
provider credentials and LLM_PROVIDER / LLM_MODEL can live there.
"""

from __future__ import annotations

import json
from pathlib import Path

from apscheduler.schedulers.blocking import BlockingScheduler
from dotenv import load_dotenv
import typer
from rich.console import Console
from rich.table import Table

from .config import AppConfig, load_config
from .core.types import STATUS_PUBLISHED
from .errors import ConfigError, PipelineError
from .runner import build_pipeline
from .scheduler import PipelineScheduler

app = typer.Typer(add_completion=False)
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", exists=True, help="YAML config file.")


def _load(config: Path | None, log_level: str | None = None) -> AppConfig:
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    # Credentials may live next to the persisted provider selection
    selection_env = Path(cfg.selection.env_path)
    if selection_env.is_file():
        load_dotenv(selection_env)
    if log_level:
        cfg.logging.level = log_level
    return cfg


@app.command()
def run(
    config: Path | None = ConfigOption,
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Run the pipeline once and print the summary."""
    pipeline = build_pipeline(_load(config, log_level))
    try:
        summary = pipeline.orchestrator.run()
    finally:
        pipeline.store.close()

    if summary.aborted:
        console.print(f"[red]Pipeline aborted:[/red] {summary.error}")
        raise typer.Exit(code=1)
    console.print(
        f"Fetched {summary.fetched}, new {summary.candidates}: "
        f"{summary.succeeded} published, {summary.failed} failed"
    )


@app.command()
def serve(
    config: Path | None = ConfigOption,
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Run now, then keep running on the configured cron schedule."""
    cfg = _load(config, log_level)
    pipeline = build_pipeline(cfg)
    info = pipeline.registry.providers_info()
    active = info["active"]
    if active:
        console.print(f"Active LLM: {active['name']} ({active['model']})")
    else:
        console.print("[yellow]No usable LLM provider configured[/yellow]")

    scheduler = PipelineScheduler(
        cfg.scheduler,
        pipeline.orchestrator.run,
        scheduler=BlockingScheduler(),
        logger=pipeline.logger,
    )
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        scheduler.shutdown()
    finally:
        pipeline.store.close()


@app.command()
def providers(
    config: Path | None = ConfigOption,
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """List rewrite providers, their models and credential status."""
    pipeline = build_pipeline(_load(config))
    info = pipeline.registry.providers_info()
    pipeline.store.close()
    if as_json:
        console.print_json(json.dumps(info, ensure_ascii=False))
        return

    table = Table(title="Rewrite providers")
    table.add_column("Key")
    table.add_column("Name")
    table.add_column("API key")
    table.add_column("Models")
    for provider in info["providers"]:
        models = ", ".join(
            f"{m['key']}*" if m["isDefault"] else m["key"] for m in provider["models"]
        )
        table.add_row(
            provider["key"],
            provider["name"],
            "yes" if provider["hasApiKey"] else "no",
            models,
        )
    console.print(table)
    active = info["active"]
    console.print(f"Active: {active['name']} ({active['model']})" if active else "Active: none")


@app.command()
def switch(
    provider: str = typer.Argument(..., help="Provider key, e.g. claude, openai, gemini, deepseek."),
    model: str | None = typer.Option(None, "--model", "-m", help="Model key (defaults to the provider default)."),
    config: Path | None = ConfigOption,
):
    """Switch the active provider and persist the choice to the .env file."""
    pipeline = build_pipeline(_load(config))
    try:
        active = pipeline.registry.switch_active(provider, model)
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    finally:
        pipeline.store.close()
    console.print(f"Provider switched: {active.config.display_name} ({active.model})")


@app.command()
def publish(
    article_id: int = typer.Argument(..., help="Id of a draft article."),
    config: Path | None = ConfigOption,
):
    """Publish a draft article."""
    pipeline = build_pipeline(_load(config))
    try:
        article = pipeline.store.update_status(article_id, STATUS_PUBLISHED)
    except PipelineError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    finally:
        pipeline.store.close()
    console.print(f"Published: {article.title_fr} ({article.slug})")


@app.command()
def articles(
    page: int = typer.Option(1, "--page"),
    limit: int = typer.Option(10, "--limit"),
    tag: str | None = typer.Option(None, "--tag"),
    slug: str | None = typer.Option(None, "--slug", help="Print one article by slug."),
    config: Path | None = ConfigOption,
):
    """Print published articles (or one article) as JSON."""
    pipeline = build_pipeline(_load(config))
    try:
        if slug:
            article = pipeline.store.find_by_slug(slug)
            if article is None:
                console.print(f"[red]Article not found: {slug}[/red]")
                raise typer.Exit(code=1)
            payload = article.to_dict()
        else:
            payload = pipeline.store.list_published(page=page, limit=limit, tag=tag).to_dict()
    finally:
        pipeline.store.close()
    console.print_json(json.dumps(payload, ensure_ascii=False))


if __name__ == "__main__":
    app()
