"""End-to-end tests for the ingestion pipeline against an in-memory store."""

from __future__ import annotations

import json

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from policy_feed import runner
from policy_feed.config import ProviderConfig
from policy_feed.core.status import ArticleStatus, PolicyDomain, PolicyStatus
from policy_feed.core.types import FeedSourceSpec, PolicySummary
from policy_feed.llm.providers.anthropic import AnthropicProvider
from policy_feed.summarize.base import Summarizer
from policy_feed.summarize.extractive import ExtractiveSummarizer
from policy_feed.summarize.policy import PolicySummarizer
from rss_samples import rss_feed, rss_item

FEED = FeedSourceSpec(name="Test News", url="https://feeds.example.com/rss", region="Philadelphia")

RELEVANT_CONTENT = (
    "SEPTA riders in Philadelphia packed the hearing before the vote on the budget. " * 3
    + "SEPTA officials said the plan would close a gap. "
    + "Riders spoke for hours about service cuts and late buses. " * 5
)
SHORT_CONTENT = "Riders gathered downtown on a rainy Tuesday morning"

FULL_PAGE = (
    "<html><head><title>Fare vote</title></head><body><article><p>"
    + "The Pennsylvania legislature in Harrisburg debated SEPTA funding, the state budget "
    "and a transit bill before the council vote. " * 4
    + "</p></article></body></html>"
)


class FeedServer:
    """MockTransport handler serving one feed and a set of article pages."""

    def __init__(self, feed_body: str = "", feed_status: int = 200):
        self.feed_body = feed_body
        self.feed_status = feed_status
        self.pages: dict[str, tuple[int, str]] = {}
        self.errors: dict[str, Exception] = {}
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url in self.errors:
            raise self.errors[url]
        if url == FEED.url:
            return httpx.Response(self.feed_status, text=self.feed_body)
        status, body = self.pages.get(url, (404, "not found"))
        return httpx.Response(status, text=body, headers={"content-type": "text/html"})

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


class ScriptedSummarizer(Summarizer):
    """Returns queued outputs in order; exceptions in the queue are raised."""

    name = "scripted"

    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.requests = []

    def summarize(self, request):
        self.requests.append(request)
        output = self.outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        return output


def _policy(short_title: str, status: PolicyStatus = PolicyStatus.INTRODUCED) -> PolicySummary:
    return PolicySummary(
        title="SEPTA fare increase",
        short_title=short_title,
        description="A plan to raise SEPTA base fares.",
        domain=PolicyDomain.TRANSIT,
        status=status,
        change_summary=f"Now {status.value.lower()}",
        ai_summary="Riders may pay more.",
    )


def _run(cfg, store, server, summarizer):
    return runner.run_ingestion(cfg, store, summarizer, feeds=[FEED], client=server.client())


def test_relevant_item_is_approved(cfg, store):
    cfg.batch.summarize_limit = 0
    server = FeedServer(rss_feed(rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT)))

    result = _run(cfg, store, server, ExtractiveSummarizer())

    raw = store.find_raw_article_by_url("https://x/a")
    assert raw.status is ArticleStatus.APPROVED
    assert raw.relevance_score >= 0.3
    assert raw.processed_at is not None
    assert result.articles_new == 1
    assert result.articles_approved == 1
    # long snippets are scored as-is
    assert server.requests == [FEED.url]


def test_short_item_with_missing_page_is_rejected(cfg, store):
    server = FeedServer(rss_feed(rss_item("SEPTA board votes on fare hike", "https://x/a", SHORT_CONTENT)))

    result = _run(cfg, store, server, ExtractiveSummarizer())

    raw = store.find_raw_article_by_url("https://x/a")
    assert "https://x/a" in server.requests
    assert raw.status is ArticleStatus.REJECTED
    assert raw.relevance_score < 0.3
    assert raw.source_content == SHORT_CONTENT
    assert result.articles_rejected == 1
    assert result.errors == []


def test_short_item_uses_fetched_full_content(cfg, store):
    cfg.batch.summarize_limit = 0
    server = FeedServer(rss_feed(rss_item("SEPTA board votes on fare hike", "https://x/a", SHORT_CONTENT)))
    server.pages["https://x/a"] = (200, FULL_PAGE)

    _run(cfg, store, server, ExtractiveSummarizer())

    raw = store.find_raw_article_by_url("https://x/a")
    assert raw.status is ArticleStatus.APPROVED
    assert "Pennsylvania legislature" in raw.source_content


def test_page_timeout_marks_item_error_and_batch_continues(cfg, store):
    cfg.batch.summarize_limit = 0
    server = FeedServer(
        rss_feed(
            rss_item("SEPTA board votes on fare hike", "https://x/a", SHORT_CONTENT),
            rss_item("Philadelphia council passes budget vote", "https://x/b", RELEVANT_CONTENT),
        )
    )
    server.errors["https://x/a"] = httpx.ConnectTimeout("connect timed out")

    result = _run(cfg, store, server, ExtractiveSummarizer())

    failed = store.find_raw_article_by_url("https://x/a")
    assert failed.status is ArticleStatus.ERROR
    assert "Timeout" in failed.error_message
    assert store.find_raw_article_by_url("https://x/b").status is ArticleStatus.APPROVED
    assert result.articles_errored == 1


def test_extractive_summary_creates_article(cfg, store):
    server = FeedServer(rss_feed(rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT)))

    result = _run(cfg, store, server, ExtractiveSummarizer())

    raw = store.find_raw_article_by_url("https://x/a")
    assert raw.status is ArticleStatus.SUMMARIZED
    assert raw.article_id is not None
    (article,) = store.list_articles()
    assert article.id == raw.article_id
    assert article.source_url == "https://x/a"
    assert article.region == "Philadelphia"
    assert result.articles_summarized == 1


def test_summarizer_timeout_marks_error_and_next_item_is_processed(cfg, store):
    server = FeedServer(
        rss_feed(
            rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT),
            rss_item("Philadelphia council budget vote", "https://x/b", RELEVANT_CONTENT),
        )
    )
    calls = []
    reply = {
        "isPolicyRelevant": True,
        "title": "Philadelphia budget",
        "shortTitle": "Philadelphia Budget",
        "description": "City budget.",
        "domain": "budget",
        "status": "PASSED",
        "changeSummary": "Council passed the budget",
        "aiSummary": "The city has a budget.",
        "nextMilestone": None,
    }

    def llm(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ReadTimeout("read timed out", request=request)
        return httpx.Response(200, json={"content": [{"type": "text", "text": json.dumps(reply)}]})

    provider = AnthropicProvider(
        ProviderConfig(name="anthropic"),
        "test-key",
        client=httpx.Client(transport=httpx.MockTransport(llm)),
    )
    with PolicySummarizer(provider) as summarizer:
        result = _run(cfg, store, server, summarizer)

    first = store.find_raw_article_by_url("https://x/a")
    second = store.find_raw_article_by_url("https://x/b")
    assert first.status is ArticleStatus.ERROR
    assert first.error_message
    assert second.status is ArticleStatus.PROCESSED
    assert second.policy_id is not None
    assert result.policies_created == 1
    assert result.articles_errored == 1


def test_matching_policy_titles_append_events_across_runs(cfg, store):
    server = FeedServer(rss_feed(rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT)))
    summarizer = ScriptedSummarizer(
        [_policy("SEPTA Fare Increase"), _policy("septa fare-increase!", PolicyStatus.PASSED)]
    )

    first = _run(cfg, store, server, summarizer)
    server.feed_body = rss_feed(
        rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT),
        rss_item("SEPTA fare vote passes in Philadelphia", "https://x/b", RELEVANT_CONTENT),
    )
    second = _run(cfg, store, server, summarizer)

    policies = store.list_policies()
    assert len(policies) == 1
    events = store.list_policy_events(policies[0].id)
    assert [e.status for e in events] == [PolicyStatus.INTRODUCED, PolicyStatus.PASSED]
    assert policies[0].status is PolicyStatus.PASSED
    assert first.policies_created == 1
    assert second.policies_created == 0
    assert second.events_added == 1
    assert store.find_raw_article_by_url("https://x/b").policy_id == policies[0].id


def test_second_run_does_not_duplicate_raw_articles(cfg, store):
    server = FeedServer(rss_feed(rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT)))

    first = _run(cfg, store, server, ExtractiveSummarizer())
    second = _run(cfg, store, server, ExtractiveSummarizer())

    assert first.articles_new == 1
    assert second.articles_fetched == 1
    assert second.articles_new == 0
    assert store.stats()["raw_articles"] == 1


def test_not_policy_relevant_output_rejects_item(cfg, store):
    server = FeedServer(rss_feed(rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT)))

    _run(cfg, store, server, ScriptedSummarizer([None]))

    assert store.find_raw_article_by_url("https://x/a").status is ArticleStatus.REJECTED


def test_no_item_is_left_processing(cfg, store):
    server = FeedServer(
        rss_feed(
            rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT),
            rss_item("Weekend weather", "https://x/b", SHORT_CONTENT),
            rss_item("Philadelphia council budget vote", "https://x/c", RELEVANT_CONTENT),
        )
    )
    summarizer = ScriptedSummarizer([RuntimeError("model crashed"), None])

    _run(cfg, store, server, summarizer)

    stats = store.stats()["raw_articles_by_status"]
    assert stats["PROCESSING"] == 0
    assert stats["PENDING"] == 0
    assert stats["ERROR"] == 1
    assert stats["REJECTED"] == 2


def test_feed_error_is_recorded_and_feed_marked_fetched(cfg, store):
    server = FeedServer(feed_status=500)

    result = _run(cfg, store, server, ExtractiveSummarizer())

    assert len(result.errors) == 1
    assert result.errors[0].startswith("Test News: HTTPStatusError: 500")
    (source,) = store.list_feed_sources()
    assert source.last_fetched_at is not None
    assert result.feeds_initialized == 1


def test_malformed_feed_url_does_not_stop_other_feeds(cfg, store):
    broken = FeedSourceSpec(name="Broken Feed", url="http://[::1/rss")
    server = FeedServer(rss_feed(rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT)))

    result = runner.run_ingestion(
        cfg, store, ExtractiveSummarizer(), feeds=[broken, FEED], client=server.client()
    )

    assert server.requests[0] == FEED.url
    assert result.articles_new == 1
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Broken Feed: InvalidURL")
    assert all(source.last_fetched_at is not None for source in store.list_feed_sources())


def test_unexpected_feed_failure_is_recorded_per_source(cfg, store, monkeypatch):
    second = FeedSourceSpec(name="Second", url="https://feeds.example.com/second")
    real_fetch_feed = runner.fetch_feed

    def flaky(url, name, **kwargs):
        if url == second.url:
            raise RuntimeError("parser exploded")
        return real_fetch_feed(url, name, **kwargs)

    monkeypatch.setattr(runner, "fetch_feed", flaky)
    server = FeedServer(rss_feed(rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT)))

    result = runner.run_ingestion(cfg, store, ExtractiveSummarizer(), feeds=[second, FEED], client=server.client())

    assert result.errors == ["Second: RuntimeError: parser exploded"]
    assert result.articles_new == 1
    assert result.articles_summarized == 1


def test_overlong_policy_title_is_stored_clipped(cfg, store):
    server = FeedServer(rss_feed(rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT)))
    summary = _policy("Fare " * 60)
    summary.title = "An act amending Title 74 concerning transit fares " * 10

    result = _run(cfg, store, server, ScriptedSummarizer([summary]))

    raw = store.find_raw_article_by_url("https://x/a")
    assert raw.status is ArticleStatus.PROCESSED
    (policy,) = store.list_policies()
    assert len(policy.title) == 300
    assert len(policy.short_title) == 200
    assert result.errors == []


def test_external_summarizer_calls_are_spaced(cfg, store, monkeypatch):
    cfg.summary.request_delay_seconds = 0.5
    sleeps = []
    monkeypatch.setattr(runner.time, "sleep", sleeps.append)
    server = FeedServer(
        rss_feed(
            rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT),
            rss_item("Philadelphia council budget vote", "https://x/b", RELEVANT_CONTENT),
        )
    )
    summarizer = ScriptedSummarizer([None, None])
    summarizer.external = True

    _run(cfg, store, server, summarizer)

    assert sleeps == [0.5]


def test_store_failure_is_fatal(cfg, store, monkeypatch):
    server = FeedServer(rss_feed(rss_item("SEPTA board votes on fare hike", "https://x/a", RELEVANT_CONTENT)))

    def broken(item):
        raise OperationalError("INSERT INTO raw_articles", {}, Exception("database is locked"))

    monkeypatch.setattr(store, "create_raw_article", broken)

    with pytest.raises(OperationalError):
        _run(cfg, store, server, ExtractiveSummarizer())


def test_run_forever_survives_failed_cycle(cfg, store, monkeypatch):
    outcomes = [RuntimeError("feeds down"), None]

    def fake_run(*args, **kwargs):
        outcome = outcomes.pop(0)
        if outcome is not None:
            raise outcome

    monkeypatch.setattr(runner, "run_ingestion", fake_run)
    sleeps = []

    cycles = runner.run_forever(cfg, store, ExtractiveSummarizer(), feeds=[FEED], max_cycles=2, sleep=sleeps.append)

    assert cycles == 2
    assert outcomes == []
    assert sleeps == [cfg.schedule.interval_seconds]
