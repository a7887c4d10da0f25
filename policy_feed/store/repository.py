"""
Persistence operations used by the ingestion pipeline.

Every public method opens its own session and commits before returning, so
a failure on one raw article never rolls back work already recorded for
another. Returned ORM objects are detached with their columns loaded.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
import logging
from typing import Any, Iterator

from sqlalchemy import create_engine, func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.matching import best_fuzzy_match, candidate_keys, normalize_title
from ..core.status import STAMPED_STATES, ArticleStatus, PolicyStatus, check_transition
from ..core.types import ArticleDraft, FeedSourceSpec, FetchedArticle, PolicySummary
from .models import Article, Base, FeedSource, Policy, PolicyEvent, RawArticle, utcnow

logger = logging.getLogger(__name__)

_RAW_ARTICLE_FIELDS = frozenset(
    {"source_content", "status", "relevance_score", "error_message", "processed_at", "article_id", "policy_id"}
)
_POLICY_FIELDS = frozenset({"description", "domain", "region", "status", "next_milestone"})


def _clip(model: Any, column: str, value: str | None) -> str | None:
    """Cut a string to the declared length of a VARCHAR column."""
    length = model.__table__.c[column].type.length
    if value is None or length is None:
        return value
    return value[:length]


class Store:
    """Repository over a SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "Store":
        """Create a store for a database URL.

        In-memory SQLite shares a single connection so every session sees the
        same database.
        """
        kwargs: dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        return cls(create_engine(url, **kwargs))

    def init_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        self.engine.dispose()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._sessions.begin() as session:
            yield session

    # Feed sources

    def upsert_feed_source(self, spec: FeedSourceSpec) -> tuple[FeedSource, bool]:
        """Insert a source or refresh name/region of an existing one.

        ``is_active`` on an existing row belongs to the operator and is left
        untouched.

        Returns:
            (source, created)
        """
        with self._session() as session:
            source = session.execute(
                select(FeedSource).where(FeedSource.url == spec.url)
            ).scalar_one_or_none()
            if source is None:
                source = FeedSource(name=spec.name, url=spec.url, region=spec.region, is_active=True)
                session.add(source)
                session.flush()
                return source, True
            source.name = spec.name
            source.region = spec.region
            return source, False

    def list_feed_sources(self, active_only: bool = True) -> list[FeedSource]:
        with self._session() as session:
            stmt = select(FeedSource).order_by(FeedSource.id)
            if active_only:
                stmt = stmt.where(FeedSource.is_active.is_(True))
            return list(session.execute(stmt).scalars())

    def set_feed_active(self, source_id: int, active: bool) -> None:
        with self._session() as session:
            source = session.get(FeedSource, source_id)
            if source is None:
                raise LookupError(f"Feed source {source_id} not found")
            source.is_active = active

    def mark_feed_fetched(self, source_id: int, when: datetime | None = None) -> None:
        with self._session() as session:
            source = session.get(FeedSource, source_id)
            if source is not None:
                source.last_fetched_at = when or utcnow()

    # Raw articles

    def find_raw_article_by_url(self, url: str) -> RawArticle | None:
        with self._session() as session:
            return session.execute(
                select(RawArticle).where(RawArticle.source_url == url)
            ).scalar_one_or_none()

    def create_raw_article(self, item: FetchedArticle) -> RawArticle:
        with self._session() as session:
            raw = RawArticle(
                source_url=item.source_url,
                source_name=_clip(RawArticle, "source_name", item.source_name),
                source_title=item.source_title,
                source_content=item.source_content or "",
                published_at=item.published_at,
                status=ArticleStatus.PENDING,
            )
            session.add(raw)
            session.flush()
            return raw

    def get_raw_article(self, raw_id: int) -> RawArticle | None:
        with self._session() as session:
            return session.get(RawArticle, raw_id)

    def update_raw_article(self, raw_id: int, **fields: Any) -> RawArticle:
        """Apply field updates to a raw article.

        A ``status`` change is validated against the transition table; entering
        a stamped state records ``processed_at`` unless one is given.

        Raises:
            LookupError: If the row does not exist
            InvalidTransitionError: If the status change is not allowed
            ValueError: If an unknown field is passed
        """
        unknown = set(fields) - _RAW_ARTICLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown raw article fields: {sorted(unknown)}")

        with self._session() as session:
            raw = session.get(RawArticle, raw_id)
            if raw is None:
                raise LookupError(f"Raw article {raw_id} not found")
            if "status" in fields:
                target = check_transition(raw.status, fields["status"])
                fields["status"] = target
                if target in STAMPED_STATES and "processed_at" not in fields:
                    fields["processed_at"] = utcnow()
            for key, value in fields.items():
                setattr(raw, key, value)
            return raw

    def list_raw_articles(self, status: ArticleStatus, limit: int | None = None) -> list[RawArticle]:
        """Rows in ``status``, oldest first."""
        with self._session() as session:
            stmt = select(RawArticle).where(RawArticle.status == ArticleStatus(status)).order_by(RawArticle.id)
            if limit is not None:
                stmt = stmt.limit(limit)
            return list(session.execute(stmt).scalars())

    def reset_errored_articles(self, limit: int | None = None, include_processing: bool = False) -> int:
        """Move ERROR rows back to PENDING for another pass. Returns the count.

        With ``include_processing``, rows left in PROCESSING by an aborted run
        are reclaimed too; they pass through ERROR so the transition table
        still applies. Only use it when no run is in progress.
        """
        statuses = [ArticleStatus.ERROR]
        if include_processing:
            statuses.append(ArticleStatus.PROCESSING)
        with self._session() as session:
            stmt = select(RawArticle).where(RawArticle.status.in_(statuses)).order_by(RawArticle.id)
            if limit is not None:
                stmt = stmt.limit(limit)
            rows = list(session.execute(stmt).scalars())
            for raw in rows:
                if raw.status is ArticleStatus.PROCESSING:
                    raw.status = check_transition(raw.status, ArticleStatus.ERROR)
                raw.status = check_transition(raw.status, ArticleStatus.PENDING)
                raw.error_message = None
                raw.processed_at = None
            return len(rows)

    # Published output

    def create_article(
        self,
        draft: ArticleDraft,
        source_name: str,
        source_url: str,
        published_at: datetime | None = None,
    ) -> Article:
        with self._session() as session:
            article = Article(
                title=_clip(Article, "title", draft.title),
                who_should_care=draft.who_should_care,
                summary=draft.summary,
                impact=draft.impact,
                category=_clip(Article, "category", draft.category),
                region=_clip(Article, "region", draft.region),
                source_name=_clip(Article, "source_name", source_name),
                source_url=source_url,
                published_at=published_at or utcnow(),
                is_active=True,
            )
            session.add(article)
            session.flush()
            return article

    def list_articles(self, limit: int | None = None) -> list[Article]:
        with self._session() as session:
            stmt = select(Article).order_by(Article.id)
            if limit is not None:
                stmt = stmt.limit(limit)
            return list(session.execute(stmt).scalars())

    def find_policy_by_title(
        self,
        short_title: str | None,
        title: str | None,
        fuzzy_threshold: int | None = None,
    ) -> Policy | None:
        """Find a stored policy matching either normalized title.

        Exact matches on the normalized columns win. When ``fuzzy_threshold``
        is set, a rapidfuzz scan over stored titles runs next.
        """
        keys = candidate_keys(short_title, title)
        if not keys:
            return None
        # stored keys are clipped to their column lengths
        for key in list(keys):
            for column in ("normalized_short_title", "normalized_title"):
                clipped = _clip(Policy, column, key)
                if clipped not in keys:
                    keys.append(clipped)
        with self._session() as session:
            policy = session.execute(
                select(Policy)
                .where(or_(Policy.normalized_short_title.in_(keys), Policy.normalized_title.in_(keys)))
                .order_by(Policy.id)
                .limit(1)
            ).scalar_one_or_none()
            if policy is not None or fuzzy_threshold is None:
                return policy

            rows = session.execute(
                select(Policy.id, Policy.normalized_short_title, Policy.normalized_title).order_by(Policy.id)
            ).all()
            match_id = best_fuzzy_match(
                keys,
                ((row.id, [row.normalized_short_title, row.normalized_title]) for row in rows),
                fuzzy_threshold,
            )
            if match_id is None:
                return None
            return session.get(Policy, match_id)

    def create_policy(
        self,
        summary: PolicySummary,
        region: str | None,
        source_name: str,
        source_url: str,
        event_date: datetime | None = None,
    ) -> Policy:
        """Create a policy together with its initial timeline event."""
        with self._session() as session:
            policy = Policy(
                title=_clip(Policy, "title", summary.title),
                short_title=_clip(Policy, "short_title", summary.short_title),
                normalized_title=_clip(Policy, "normalized_title", normalize_title(summary.title)),
                normalized_short_title=_clip(Policy, "normalized_short_title", normalize_title(summary.short_title)),
                description=summary.description,
                domain=summary.domain,
                region=_clip(Policy, "region", region),
                status=summary.status,
                next_milestone=summary.next_milestone,
                source_name=_clip(Policy, "source_name", source_name),
                source_url=source_url,
            )
            policy.events.append(
                PolicyEvent(
                    status=summary.status,
                    event_date=event_date or utcnow(),
                    change_summary=summary.change_summary,
                    ai_summary=summary.ai_summary,
                    sources=[source_url],
                )
            )
            session.add(policy)
            session.flush()
            return policy

    def append_policy_event(
        self,
        policy_id: int,
        summary: PolicySummary,
        source_url: str,
        event_date: datetime | None = None,
    ) -> tuple[PolicyEvent, bool]:
        """Append a timeline event and keep the policy status in step with it.

        Returns:
            (event, status_changed)
        """
        with self._session() as session:
            policy = session.get(Policy, policy_id)
            if policy is None:
                raise LookupError(f"Policy {policy_id} not found")
            event = PolicyEvent(
                policy_id=policy.id,
                status=summary.status,
                event_date=event_date or utcnow(),
                change_summary=summary.change_summary,
                ai_summary=summary.ai_summary,
                sources=[source_url],
            )
            session.add(event)
            changed = policy.status != summary.status
            if changed:
                policy.status = summary.status
                policy.next_milestone = summary.next_milestone
            policy.updated_at = utcnow()
            session.flush()
            return event, changed

    def update_policy(self, policy_id: int, **fields: Any) -> Policy:
        unknown = set(fields) - _POLICY_FIELDS
        if unknown:
            raise ValueError(f"Unknown policy fields: {sorted(unknown)}")
        with self._session() as session:
            policy = session.get(Policy, policy_id)
            if policy is None:
                raise LookupError(f"Policy {policy_id} not found")
            if "status" in fields:
                fields["status"] = PolicyStatus(fields["status"])
            for key, value in fields.items():
                setattr(policy, key, value)
            policy.updated_at = utcnow()
            return policy

    def get_policy(self, policy_id: int) -> Policy | None:
        with self._session() as session:
            return session.get(Policy, policy_id)

    def list_policies(self) -> list[Policy]:
        with self._session() as session:
            return list(session.execute(select(Policy).order_by(Policy.id)).scalars())

    def list_policy_events(self, policy_id: int) -> list[PolicyEvent]:
        """Timeline of a policy, oldest first."""
        with self._session() as session:
            return list(
                session.execute(
                    select(PolicyEvent).where(PolicyEvent.policy_id == policy_id).order_by(PolicyEvent.id)
                ).scalars()
            )

    def stats(self) -> dict[str, Any]:
        """Row counts for the status endpoint and CLI."""
        with self._session() as session:
            by_status = {status.value: 0 for status in ArticleStatus}
            for status, count in session.execute(
                select(RawArticle.status, func.count(RawArticle.id)).group_by(RawArticle.status)
            ):
                by_status[ArticleStatus(status).value] = count

            def count(model) -> int:
                return session.execute(select(func.count(model.id))).scalar_one()

            return {
                "feed_sources": count(FeedSource),
                "active_feed_sources": session.execute(
                    select(func.count(FeedSource.id)).where(FeedSource.is_active.is_(True))
                ).scalar_one(),
                "raw_articles": sum(by_status.values()),
                "raw_articles_by_status": by_status,
                "articles": count(Article),
                "policies": count(Policy),
                "policy_events": count(PolicyEvent),
            }
