"""SQLAlchemy ORM models for feed sources, raw articles and published output."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

from ..core.status import ArticleStatus, PolicyDomain, PolicyStatus

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _values(enum_cls):
    return [member.value for member in enum_cls]


class FeedSource(Base):
    __tablename__ = "feed_sources"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    url = Column(String(1000), nullable=False, unique=True)
    region = Column(String(100), nullable=False, default="Statewide")
    is_active = Column(Boolean, nullable=False, default=True)
    last_fetched_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"FeedSource(id={self.id!r}, name={self.name!r}, active={self.is_active!r})"


class RawArticle(Base):
    __tablename__ = "raw_articles"

    id = Column(Integer, primary_key=True)
    source_url = Column(String(2000), nullable=False, unique=True)
    source_name = Column(String(200), nullable=False)
    source_title = Column(Text, nullable=False)
    source_content = Column(Text, nullable=False, default="")
    published_at = Column(DateTime(timezone=True))
    status = Column(
        Enum(ArticleStatus, native_enum=False, length=20, values_callable=_values),
        nullable=False,
        default=ArticleStatus.PENDING,
        index=True,
    )
    relevance_score = Column(Float)
    error_message = Column(Text)
    processed_at = Column(DateTime(timezone=True))
    article_id = Column(Integer, ForeignKey("articles.id"))
    policy_id = Column(Integer, ForeignKey("policies.id"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"RawArticle(id={self.id!r}, status={self.status!r}, url={self.source_url!r})"


class Article(Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True)
    title = Column(String(300), nullable=False)
    who_should_care = Column(Text, nullable=False)
    summary = Column(Text, nullable=False)
    impact = Column(Text, nullable=False)
    category = Column(String(100))
    region = Column(String(100))
    source_name = Column(String(200))
    source_url = Column(String(2000))
    published_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Policy(Base):
    __tablename__ = "policies"

    id = Column(Integer, primary_key=True)
    title = Column(String(300), nullable=False)
    short_title = Column(String(200), nullable=False)
    normalized_title = Column(String(300), nullable=False, index=True)
    normalized_short_title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    domain = Column(
        Enum(PolicyDomain, native_enum=False, length=20, values_callable=_values),
        nullable=False,
        default=PolicyDomain.GENERAL,
    )
    region = Column(String(100))
    status = Column(
        Enum(PolicyStatus, native_enum=False, length=30, values_callable=_values),
        nullable=False,
    )
    next_milestone = Column(Text)
    source_name = Column(String(200))
    source_url = Column(String(2000))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    events = relationship(
        "PolicyEvent",
        back_populates="policy",
        order_by="PolicyEvent.id",
        cascade="all, delete-orphan",
    )


class PolicyEvent(Base):
    __tablename__ = "policy_events"

    id = Column(Integer, primary_key=True)
    policy_id = Column(Integer, ForeignKey("policies.id"), nullable=False, index=True)
    status = Column(
        Enum(PolicyStatus, native_enum=False, length=30, values_callable=_values),
        nullable=False,
    )
    event_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    change_summary = Column(Text, nullable=False)
    ai_summary = Column(Text, nullable=False)
    sources = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    policy = relationship("Policy", back_populates="events")
