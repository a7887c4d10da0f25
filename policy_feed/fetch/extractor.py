"""
Full article text extraction with multiple fallback strategies.

This module provides a chain of extraction methods:
1. selectors: BeautifulSoup boilerplate removal plus ordered CMS selectors,
   falling back to paragraph concatenation (default)
2. readability: Mozilla's readability algorithm
3. trafilatura: purpose-built main-content extractor

``fetch_article_content`` is only called when a feed snippet is too short
to score reliably.
"""

from __future__ import annotations

import re
from typing import Callable

from bs4 import BeautifulSoup
import httpx
import trafilatura
from readability import Document

from ..config import ExtractConfig, FetchConfig
from ..core.types import ExtractedContent
from .fetcher import fetch_url

REMOVE_SELECTORS = (
    "script",
    "style",
    "noscript",
    "nav",
    "footer",
    "header",
    "aside",
    ".ad",
    ".advertisement",
)

CONTENT_SELECTORS = (
    "article",
    '[role="main"]',
    ".article-body",
    ".story-body",
    ".post-content",
    ".entry-content",
    "main",
)

_SPACE_RE = re.compile(r"\s+")

Extracted = tuple[str, str]  # (title, text)


class ContentFetchError(RuntimeError):
    """Raised when an article page cannot be downloaded (network error or timeout)."""

    def __init__(self, url: str, error: str, timed_out: bool = False):
        super().__init__(f"Failed to fetch article content from {url}: {error}")
        self.url = url
        self.error = error
        self.timed_out = timed_out


def fetch_article_content(
    url: str,
    fetch_cfg: FetchConfig,
    extract_cfg: ExtractConfig,
    client: httpx.Client | None = None,
) -> ExtractedContent | None:
    """Download an article page and extract its main readable text.

    Args:
        url: Article URL
        fetch_cfg: Timeout, user agent and proxy settings
        extract_cfg: Extraction chain and length bounds
        client: Optional pre-built httpx client

    Returns:
        ExtractedContent, or None when the server answered with a
        non-success status or no strategy found any text

    Raises:
        ContentFetchError: On network failure or timeout
    """
    result = fetch_url(
        url,
        timeout=fetch_cfg.page_timeout_seconds,
        user_agent=fetch_cfg.user_agent,
        trust_env=fetch_cfg.trust_env,
        client=client,
    )
    if result.error:
        raise ContentFetchError(url, result.error, timed_out=result.timed_out)
    if not result.ok or not result.text:
        return None

    extracted = extract_content(
        result.text,
        primary=extract_cfg.primary,
        fallback=extract_cfg.fallback,
        min_candidate_chars=extract_cfg.min_candidate_chars,
        max_chars=extract_cfg.max_chars,
    )
    if extracted is None:
        return None
    method, title, text = extracted
    return ExtractedContent(url=url, title=title, text=text, method=method)


def extract_content(
    html: str,
    primary: str = "selectors",
    fallback: list[str] | None = None,
    min_candidate_chars: int = 200,
    max_chars: int = 10000,
) -> tuple[str, str, str] | None:
    """Extract (method, title, text) from HTML using a chain of extractors.

    Tries each extraction method in order until one produces non-empty
    output. Text is whitespace-collapsed and truncated to ``max_chars``.

    Examples:
        >>> extract_content(html, "selectors", ["readability", "trafilatura"])
        ("selectors", "Page title", "Article content here...")
    """
    order = [primary] + [name for name in (fallback or []) if name != primary]
    for method in order:
        extractor = _get_extractor(method, min_candidate_chars)
        if extractor is None:
            continue
        extracted = extractor(html)
        if extracted is None:
            continue
        title, text = extracted
        text = collapse_whitespace(text)[:max_chars]
        if text:
            return method, collapse_whitespace(title), text
    return None


def collapse_whitespace(text: str | None) -> str:
    return _SPACE_RE.sub(" ", text or "").strip()


def _get_extractor(name: str, min_candidate_chars: int) -> Callable[[str], Extracted | None] | None:
    if name == "selectors":
        return lambda html: extract_with_selectors(html, min_candidate_chars)
    if name == "readability":
        return _extract_readability
    if name == "trafilatura":
        return _extract_trafilatura
    return None


def extract_with_selectors(html: str, min_candidate_chars: int = 200) -> Extracted | None:
    """Strip page chrome, then take the first content container with enough text.

    When no container qualifies, all paragraph text is concatenated instead.
    """
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text() if soup.title else ""

    for selector in REMOVE_SELECTORS:
        for tag in soup.select(selector):
            tag.extract()

    content = ""
    for selector in CONTENT_SELECTORS:
        elements = soup.select(selector)
        if not elements:
            continue
        content = collapse_whitespace(" ".join(el.get_text(separator=" ") for el in elements))
        if len(content) > min_candidate_chars:
            break

    if len(content) <= min_candidate_chars:
        content = " ".join(p.get_text(separator=" ") for p in soup.find_all("p"))

    content = collapse_whitespace(content)
    if not content:
        return None
    return title, content


def _extract_readability(html: str) -> Extracted | None:
    """Extract article content using Mozilla's readability algorithm.

    Readability scores DOM nodes by text and link density and returns the
    main content block as simplified HTML, converted here to plain text.
    """
    doc = Document(html)
    content_html = doc.summary()
    text = BeautifulSoup(content_html, "html.parser").get_text(separator=" ")
    if not text.strip():
        return None
    return doc.short_title() or doc.title() or "", text


def _extract_trafilatura(html: str) -> Extracted | None:
    text = trafilatura.extract(html)
    if not text:
        return None
    return "", text
