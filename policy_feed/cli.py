"""
Command-line interface for the policy feed ingester.

Uses Typer for commands and options; loads a .env file so API keys and the
database URL can live outside the config file.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError
import typer

from .config import AppConfig, get_database_url, load_config
from .feeds import initialize_feed_sources, load_feed_specs
from .llm.tracing import flush, setup_langfuse
from .logging_utils import setup_llm_logger, setup_logging
from .runner import run_forever, run_ingestion
from .store import Store
from .summarize.factory import STRATEGIES, build_summarizer

app = typer.Typer(add_completion=False, help="Ingest Pennsylvania policy news from RSS feeds.")
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="YAML config file.")
DbUrlOption = typer.Option(None, "--db-url", help="Database URL (overrides DATABASE_URL and config).")
LogLevelOption = typer.Option(None, "--log-level", help="Logging level.")


def _load(config: Path | None, db_url: str | None, log_level: str | None) -> AppConfig:
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    if db_url:
        cfg.store.url = db_url
        cfg.store.url_env = ""
    if log_level:
        cfg.logging.level = log_level
    return cfg


def _open_store(cfg: AppConfig) -> Store:
    store = Store.from_url(get_database_url(cfg.store), echo=cfg.store.echo)
    store.init_schema()
    return store


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


@app.command()
def run(
    watch: bool = typer.Option(False, "--watch", help="Keep running on a fixed interval."),
    interval: int | None = typer.Option(None, "--interval", min=1, help="Seconds between watch cycles."),
    config: Path | None = ConfigOption,
    db_url: str | None = DbUrlOption,
    summarizer_name: str | None = typer.Option(
        None, "--summarizer", help=f"Summary strategy: {', '.join(STRATEGIES)}."
    ),
    log_level: str | None = LogLevelOption,
    api_key: str | None = typer.Option(None, "--api-key", help="Override the LLM provider API key."),
):
    """Run one ingestion cycle, or keep cycling with --watch."""
    try:
        cfg = _load(config, db_url, log_level)
        if summarizer_name:
            cfg.summary.strategy = summarizer_name
        if api_key:
            cfg.provider.api_key = api_key
        if interval is not None:
            cfg.schedule.interval_seconds = interval

        logger = setup_logging(cfg.logging)
        setup_langfuse(cfg.langfuse)
        feeds = load_feed_specs(cfg.feeds_file)
        store = _open_store(cfg)
        summarizer = build_summarizer(cfg, setup_llm_logger(cfg.logging))
    except (SQLAlchemyError, ValueError, OSError) as exc:
        _fail(f"{type(exc).__name__}: {exc}")
        return

    try:
        with summarizer:
            if watch:
                console.print(
                    f"Watching feeds every {cfg.schedule.interval_seconds}s. Press Ctrl+C to stop."
                )
                run_forever(cfg, store, summarizer, feeds=feeds, logger=logger)
            else:
                result = run_ingestion(cfg, store, summarizer, feeds=feeds, logger=logger)
                _print_result(result.to_dict())
    except KeyboardInterrupt:
        console.print("Stopped.")
    except (SQLAlchemyError, ValueError) as exc:
        _fail(f"Ingestion failed: {type(exc).__name__}: {exc}")
    finally:
        flush()
        store.close()


@app.command("init-feeds")
def init_feeds(
    config: Path | None = ConfigOption,
    db_url: str | None = DbUrlOption,
    log_level: str | None = LogLevelOption,
):
    """Register the configured feed sources without fetching."""
    try:
        cfg = _load(config, db_url, log_level)
        setup_logging(cfg.logging)
        store = _open_store(cfg)
        count = initialize_feed_sources(store, load_feed_specs(cfg.feeds_file))
    except (SQLAlchemyError, ValueError, OSError) as exc:
        _fail(f"{type(exc).__name__}: {exc}")
        return
    store.close()
    console.print(f"Initialized {count} feed sources.")


@app.command()
def status(
    config: Path | None = ConfigOption,
    db_url: str | None = DbUrlOption,
):
    """Show feed sources and article counts."""
    try:
        cfg = _load(config, db_url, None)
        store = _open_store(cfg)
        stats = store.stats()
        sources = store.list_feed_sources(active_only=False)
    except (SQLAlchemyError, ValueError, OSError) as exc:
        _fail(f"{type(exc).__name__}: {exc}")
        return
    store.close()

    feeds_table = Table(title="Feed sources")
    feeds_table.add_column("Name")
    feeds_table.add_column("Region")
    feeds_table.add_column("Active")
    feeds_table.add_column("Last fetched")
    for source in sources:
        last = source.last_fetched_at.isoformat(timespec="seconds") if source.last_fetched_at else "-"
        feeds_table.add_row(source.name, source.region, "yes" if source.is_active else "no", last)
    console.print(feeds_table)

    counts = Table(title="Raw articles")
    counts.add_column("Status")
    counts.add_column("Count", justify="right")
    for name, count in stats["raw_articles_by_status"].items():
        counts.add_row(name, str(count))
    console.print(counts)
    console.print(
        f"Articles: {stats['articles']}  Policies: {stats['policies']}  "
        f"Policy events: {stats['policy_events']}"
    )


@app.command()
def reprocess(
    limit: int | None = typer.Option(None, "--limit", min=1, help="Maximum rows to reset."),
    include_processing: bool = typer.Option(
        False,
        "--include-processing",
        help="Also reclaim rows stuck in PROCESSING after an aborted run.",
    ),
    config: Path | None = ConfigOption,
    db_url: str | None = DbUrlOption,
):
    """Move ERROR articles back to PENDING so the next run retries them."""
    try:
        cfg = _load(config, db_url, None)
        store = _open_store(cfg)
        count = store.reset_errored_articles(limit=limit, include_processing=include_processing)
    except (SQLAlchemyError, ValueError, OSError) as exc:
        _fail(f"{type(exc).__name__}: {exc}")
        return
    store.close()
    console.print(f"Reset {count} errored articles to PENDING.")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
    config: Path | None = ConfigOption,
    db_url: str | None = DbUrlOption,
    log_level: str | None = LogLevelOption,
):
    """Serve the HTTP ingestion trigger."""
    import uvicorn

    from .server import create_app

    try:
        cfg = _load(config, db_url, log_level)
        logger = setup_logging(cfg.logging)
        setup_langfuse(cfg.langfuse)
        store = _open_store(cfg)
        summarizer = build_summarizer(cfg, setup_llm_logger(cfg.logging))
        api = create_app(cfg, store, summarizer, logger=logger)
    except (SQLAlchemyError, ValueError, OSError) as exc:
        _fail(f"{type(exc).__name__}: {exc}")
        return

    try:
        uvicorn.run(api, host=host or cfg.server.host, port=port or cfg.server.port)
    finally:
        summarizer.close()
        flush()
        store.close()


def _print_result(results: dict) -> None:
    table = Table(title="Ingestion results")
    table.add_column("Counter")
    table.add_column("Value", justify="right")
    for key, value in results.items():
        if key == "errors":
            continue
        table.add_row(key, str(value))
    console.print(table)
    for error in results.get("errors", []):
        console.print(f"[yellow]-[/yellow] {error}")


if __name__ == "__main__":
    app()
