"""
Ingestion pipeline orchestration.

One run walks the stages in order:
1. Upsert the configured feed sources
2. Poll every active source and store unseen items as PENDING raw articles
3. Score a batch of pending articles (fetching full text for short snippets)
4. Summarize a batch of approved articles into Articles or Policy updates

Per-item failures are recorded on the raw article (status ERROR) and never
stop the run. Store failures and illegal state transitions propagate.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

import httpx
from sqlalchemy.exc import SQLAlchemyError

from .config import AppConfig
from .core.classify import detect_region
from .core.scoring import calculate_relevance_score, is_relevant
from .core.status import ArticleStatus, InvalidTransitionError
from .core.types import ArticleDraft, FeedFetchResult, FeedSourceSpec, PolicySummary, RunResult, SummaryRequest
from .feeds import initialize_feed_sources, load_feed_specs
from .fetch.extractor import fetch_article_content
from .fetch.rss import fetch_feed
from .llm.tracing import record_span_error, set_span_output, start_span
from .logging_utils import log_event
from .store import RawArticle, Store
from .summarize.base import Summarizer

_FATAL_ERRORS = (SQLAlchemyError, InvalidTransitionError)


def run_ingestion(
    cfg: AppConfig,
    store: Store,
    summarizer: Summarizer,
    feeds: list[FeedSourceSpec] | None = None,
    logger: logging.Logger | None = None,
    client: httpx.Client | None = None,
) -> RunResult:
    """Run one full ingestion cycle.

    Args:
        cfg: Application configuration
        store: Persistence layer
        summarizer: Strategy turning approved articles into output
        feeds: Feed list; defaults to ``cfg.feeds_file`` or the built-in feeds
        logger: Pipeline logger (defaults to the ``policy_feed`` logger)
        client: Optional shared httpx client for feed and page requests

    Returns:
        Counters for the run

    Raises:
        SQLAlchemyError: If the store fails
        ValueError: If the feed configuration is malformed
    """
    logger = logger or logging.getLogger("policy_feed")
    if feeds is None:
        feeds = load_feed_specs(cfg.feeds_file)

    result = RunResult(started_at=datetime.now(timezone.utc))
    started = time.monotonic()

    with start_span(
        "policy_feed.run",
        kind="chain",
        input_value={"feeds": len(feeds), "summarizer": summarizer.name},
    ) as run_span:
        log_event(logger, "Ingestion start", event="ingest_start", feeds=len(feeds), summarizer=summarizer.name)
        try:
            result.feeds_initialized = initialize_feed_sources(store, feeds)
            fetch_new_articles(cfg, store, result, logger, client=client)
            score_pending_articles(cfg, store, result, logger, client=client)
            summarize_approved_articles(cfg, store, summarizer, result, logger)
        except Exception as exc:
            record_span_error(run_span, exc)
            raise

        result.duration_seconds = round(time.monotonic() - started, 2)
        summary = result.to_dict()
        log_event(
            logger,
            "Ingestion complete",
            event="ingest_complete",
            **{k: v for k, v in summary.items() if k not in ("errors", "started_at")},
            error_count=len(result.errors),
        )
        set_span_output(run_span, summary)
    return result


def fetch_new_articles(
    cfg: AppConfig,
    store: Store,
    result: RunResult,
    logger: logging.Logger,
    client: httpx.Client | None = None,
) -> int:
    """Poll active sources and store unseen items. Returns the number of new rows."""
    new_count = 0
    for source in store.list_feed_sources(active_only=True):
        with start_span("policy_feed.fetch_feed", kind="tool", input_value={"url": source.url}) as span:
            try:
                feed_result = fetch_feed(
                    source.url,
                    source.name,
                    timeout=cfg.fetch.feed_timeout_seconds,
                    user_agent=cfg.fetch.user_agent,
                    max_items=cfg.fetch.max_items_per_feed,
                    trust_env=cfg.fetch.trust_env,
                    client=client,
                )
            except _FATAL_ERRORS:
                raise
            except Exception as exc:  # noqa: BLE001
                record_span_error(span, exc)
                feed_result = FeedFetchResult(url=source.url, error=f"{type(exc).__name__}: {exc}")
            set_span_output(span, {"items": len(feed_result.articles), "error": feed_result.error})
        store.mark_feed_fetched(source.id)

        if feed_result.error:
            result.errors.append(f"{source.name}: {feed_result.error}")
            log_event(
                logger,
                "Feed fetch failed",
                level=logging.WARNING,
                event="feed_error",
                feed=source.name,
                url=source.url,
                error=feed_result.error,
            )
            continue

        result.articles_fetched += len(feed_result.articles)
        added = 0
        for item in feed_result.articles:
            if store.find_raw_article_by_url(item.source_url) is not None:
                continue
            store.create_raw_article(item)
            added += 1
        new_count += added
        log_event(
            logger,
            "Feed fetched",
            event="feed_fetched",
            feed=source.name,
            items=len(feed_result.articles),
            new=added,
        )

    result.articles_new += new_count
    return new_count


def score_pending_articles(
    cfg: AppConfig,
    store: Store,
    result: RunResult,
    logger: logging.Logger,
    client: httpx.Client | None = None,
) -> int:
    """Score one batch of pending articles. Returns the number approved."""
    pending = store.list_raw_articles(ArticleStatus.PENDING, limit=cfg.batch.score_limit)
    approved = 0
    for raw in pending:
        store.update_raw_article(raw.id, status=ArticleStatus.PROCESSING)
        try:
            content = _improve_content(cfg, store, raw, logger, client)
            score = calculate_relevance_score(raw.source_title, content)
            if is_relevant(score, cfg.scoring.threshold):
                store.update_raw_article(raw.id, status=ArticleStatus.APPROVED, relevance_score=score)
                approved += 1
                decision = "approved"
            else:
                store.update_raw_article(raw.id, status=ArticleStatus.REJECTED, relevance_score=score)
                result.articles_rejected += 1
                decision = "rejected"
            log_event(
                logger,
                f"Article {decision}",
                event="article_scored",
                raw_id=raw.id,
                title=raw.source_title,
                score=score,
                decision=decision,
            )
        except _FATAL_ERRORS:
            raise
        except Exception as exc:  # noqa: BLE001
            _mark_error(store, raw, exc, result, logger, stage="score")

    result.articles_approved += approved
    return approved


def _improve_content(
    cfg: AppConfig,
    store: Store,
    raw: RawArticle,
    logger: logging.Logger,
    client: httpx.Client | None,
) -> str:
    content = raw.source_content or ""
    if not cfg.extract.enabled or len(content) >= cfg.extract.min_snippet_chars:
        return content

    extracted = fetch_article_content(raw.source_url, cfg.fetch, cfg.extract, client=client)
    if extracted is None or not extracted.text:
        log_event(logger, "No full content", level=logging.DEBUG, event="content_missing", url=raw.source_url)
        return content

    store.update_raw_article(raw.id, source_content=extracted.text)
    log_event(
        logger,
        "Full content fetched",
        level=logging.DEBUG,
        event="content_fetched",
        url=raw.source_url,
        method=extracted.method,
        chars=len(extracted.text),
    )
    return extracted.text


def summarize_approved_articles(
    cfg: AppConfig,
    store: Store,
    summarizer: Summarizer,
    result: RunResult,
    logger: logging.Logger,
) -> int:
    """Summarize one batch of approved articles. Returns the number published."""
    approved = store.list_raw_articles(ArticleStatus.APPROVED, limit=cfg.batch.summarize_limit)
    published = 0
    for index, raw in enumerate(approved):
        if summarizer.external and index > 0 and cfg.summary.request_delay_seconds > 0:
            time.sleep(cfg.summary.request_delay_seconds)

        request = SummaryRequest(
            title=raw.source_title,
            content=raw.source_content or "",
            source_name=raw.source_name,
            source_url=raw.source_url,
            published_at=raw.published_at,
        )
        try:
            with start_span(
                "policy_feed.summarize",
                kind="chain",
                input_value={"url": raw.source_url, "title": raw.source_title},
                attributes={"summarizer": summarizer.name},
            ) as span:
                output = summarizer.summarize(request)
                set_span_output(span, {"result": type(output).__name__})

            if output is None:
                store.update_raw_article(raw.id, status=ArticleStatus.REJECTED)
                result.articles_rejected += 1
                log_event(logger, "Not policy relevant", event="article_not_policy", raw_id=raw.id)
                continue

            if isinstance(output, ArticleDraft):
                article = store.create_article(
                    output,
                    source_name=raw.source_name,
                    source_url=raw.source_url,
                    published_at=raw.published_at,
                )
                store.update_raw_article(raw.id, status=ArticleStatus.SUMMARIZED, article_id=article.id)
                log_event(logger, "Article created", event="article_created", raw_id=raw.id, article_id=article.id)
            elif isinstance(output, PolicySummary):
                policy_id = merge_policy(cfg, store, raw, output, result, logger)
                store.update_raw_article(raw.id, status=ArticleStatus.PROCESSED, policy_id=policy_id)
            else:
                raise TypeError(f"Unexpected summarizer output: {type(output).__name__}")
            published += 1
        except _FATAL_ERRORS:
            raise
        except Exception as exc:  # noqa: BLE001
            _mark_error(store, raw, exc, result, logger, stage="summarize")

    result.articles_summarized += published
    return published


def merge_policy(
    cfg: AppConfig,
    store: Store,
    raw: RawArticle,
    summary: PolicySummary,
    result: RunResult,
    logger: logging.Logger,
) -> int:
    """Fold a policy summary into the matching stored policy or create one.

    Returns:
        The id of the policy the update was recorded against
    """
    event_date = raw.published_at or datetime.now(timezone.utc)
    existing = store.find_policy_by_title(summary.short_title, summary.title, cfg.matching.fuzzy_threshold)
    if existing is None:
        policy = store.create_policy(
            summary,
            region=detect_region(raw.source_title, raw.source_content or ""),
            source_name=raw.source_name,
            source_url=raw.source_url,
            event_date=event_date,
        )
        result.policies_created += 1
        result.events_added += 1
        log_event(
            logger,
            "Policy created",
            event="policy_created",
            policy_id=policy.id,
            short_title=policy.short_title,
            status=summary.status.value,
        )
        return policy.id

    _, changed = store.append_policy_event(existing.id, summary, raw.source_url, event_date=event_date)
    result.events_added += 1
    log_event(
        logger,
        "Policy event added",
        event="policy_event_added",
        policy_id=existing.id,
        short_title=existing.short_title,
        status=summary.status.value,
        status_changed=changed,
    )
    return existing.id


def _mark_error(
    store: Store,
    raw: RawArticle,
    exc: Exception,
    result: RunResult,
    logger: logging.Logger,
    stage: str,
) -> None:
    message = f"{type(exc).__name__}: {exc}"
    store.update_raw_article(raw.id, status=ArticleStatus.ERROR, error_message=message)
    result.articles_errored += 1
    result.errors.append(f"{raw.source_url}: {message}")
    log_event(
        logger,
        "Article failed",
        level=logging.ERROR,
        event="article_error",
        stage=stage,
        raw_id=raw.id,
        url=raw.source_url,
        error=message,
    )


def run_forever(
    cfg: AppConfig,
    store: Store,
    summarizer: Summarizer,
    feeds: list[FeedSourceSpec] | None = None,
    logger: logging.Logger | None = None,
    max_cycles: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Re-run ingestion every ``cfg.schedule.interval_seconds``.

    A failed cycle is logged and the loop keeps going. ``max_cycles`` bounds
    the loop for tests; ``None`` runs until interrupted.

    Returns:
        Number of cycles started
    """
    logger = logger or logging.getLogger("policy_feed")
    interval = cfg.schedule.interval_seconds
    cycles = 0
    while max_cycles is None or cycles < max_cycles:
        cycles += 1
        try:
            run_ingestion(cfg, store, summarizer, feeds=feeds, logger=logger)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                "Ingestion cycle failed",
                level=logging.ERROR,
                event="ingest_cycle_failed",
                cycle=cycles,
                error=f"{type(exc).__name__}: {exc}",
            )
        if max_cycles is not None and cycles >= max_cycles:
            break
        log_event(logger, "Waiting for next cycle", event="ingest_sleep", seconds=interval)
        sleep(interval)
    return cycles
