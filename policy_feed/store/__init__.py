"""Relational persistence for sources, raw articles and published output."""

from .models import Article, Base, FeedSource, Policy, PolicyEvent, RawArticle
from .repository import Store

__all__ = [
    "Article",
    "Base",
    "FeedSource",
    "Policy",
    "PolicyEvent",
    "RawArticle",
    "Store",
]
