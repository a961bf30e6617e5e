from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests
from bs4 import BeautifulSoup

from .models import ContentItem, PageRef


TEXT_SNIPPET_CHARS = 500

# browser-internal pages that cannot be read or grouped
SYSTEM_URL_PREFIXES = ("chrome://", "chrome-extension://", "edge://", "about:")

_WHITESPACE_RE = re.compile(r"\s+")


def is_groupable(url: Optional[str]) -> bool:
    return bool(url) and not str(url).startswith(SYSTEM_URL_PREFIXES)


def filter_groupable(handles: Iterable[Any]) -> List[Any]:
    return [h for h in handles if is_groupable(getattr(h, "url", None))]


def page_from_dict(row: Dict[str, Any]) -> PageRef:
    raw_id = row.get("id")
    try:
        page_id: Optional[int] = int(raw_id) if raw_id is not None else None
    except (TypeError, ValueError):
        page_id = None
    return PageRef(
        id=page_id,
        url=str(row.get("url") or ""),
        title=str(row.get("title") or ""),
        html=row.get("html"),
    )


def _clean(s: str) -> str:
    return _WHITESPACE_RE.sub(" ", s).strip()


def parse_page(html: str, fallback_title: str = "") -> Dict[str, str]:
    """Pull title, h1/h2 headings and a leading text snippet out of an HTML page."""
    soup = BeautifulSoup(html, "html.parser")

    title = _clean(soup.title.get_text()) if soup.title else ""
    headings = " ".join(
        t for t in (_clean(h.get_text(separator=" ")) for h in soup.find_all(["h1", "h2"])) if t
    )
    root = soup.find("article") or soup.find("main") or soup.body or soup
    text = _clean(root.get_text(separator=" "))[:TEXT_SNIPPET_CHARS].strip()

    return {
        "title": title or fallback_title or "Untitled",
        "headings": headings,
        "text": text,
    }


class ContentProvider:
    def extract(self, handles: Sequence[Any]) -> List[ContentItem]:  # pragma: no cover - interface
        raise NotImplementedError


class HtmlContentProvider(ContentProvider):
    """Builds content items from the HTML of each page, fetching it if allowed.

    A page that cannot be read still yields an item built from its known
    title, marked with ``error``; one bad page never aborts the batch.
    """

    def __init__(self, fetch: bool = False, timeout: float = 10.0) -> None:
        self.fetch = fetch
        self.timeout = timeout

    def _load_html(self, page: PageRef) -> str:
        if page.html:
            return page.html
        if not self.fetch:
            raise ValueError("no HTML captured and fetching is disabled")
        resp = requests.get(page.url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.text

    def _extract_one(self, page: PageRef) -> ContentItem:
        fields = parse_page(self._load_html(page), fallback_title=page.title)
        return ContentItem(
            handle=page,
            title=fields["title"],
            headings=fields["headings"],
            text=fields["text"] or fields["title"] or "No content",
            url=page.url,
        )

    @staticmethod
    def degraded(page: PageRef, error: Exception) -> ContentItem:
        return ContentItem(
            handle=page,
            title=page.title or "Untitled",
            headings="",
            text=page.title or "Unknown content",
            url=page.url,
            error=str(error),
        )

    def extract(self, handles: Sequence[PageRef]) -> List[ContentItem]:
        items: List[ContentItem] = []
        degraded = 0
        for page in handles:
            try:
                item = self._extract_one(page)
            except Exception as e:  # noqa: BLE001 - degrade per page
                logging.warning("Failed to extract content from %s (%s): %s", page.url, page.title, e)
                item = self.degraded(page, e)
                degraded += 1
            items.append(item)
        logging.info("Extracted content from %d pages (%d degraded)", len(items), degraded)
        return items
