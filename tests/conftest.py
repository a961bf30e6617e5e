from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional

import pytest

from tabgroup.classifier import Availability, Classifier, ClassifierConfig, ClassifierSession
from tabgroup.models import ContentItem, PageRef


class FakeSession(ClassifierSession):
    """Answers prompts through ``responder`` and records what it was asked."""

    def __init__(self, responder: Callable[[str], str], delay: float = 0.0) -> None:
        self.responder = responder
        self.delay = delay
        self.prompts: List[str] = []
        self.destroy_calls = 0

    async def prompt(self, text: str) -> str:
        self.prompts.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.responder(text)

    async def destroy(self) -> None:
        self.destroy_calls += 1


class FakeClassifier(Classifier):
    def __init__(
        self,
        responder: Optional[Callable[[str], str]] = None,
        availability: Availability = Availability.AVAILABLE,
        delay: float = 0.0,
        fail_create: bool = False,
    ) -> None:
        self.responder = responder or (lambda _text: "NO")
        self.state = availability
        self.delay = delay
        self.fail_create = fail_create
        self.availability_calls = 0
        self.sessions: List[FakeSession] = []
        self.configs: List[ClassifierConfig] = []

    async def availability(self) -> Availability:
        self.availability_calls += 1
        return self.state

    async def create(self, config: ClassifierConfig) -> ClassifierSession:
        self.configs.append(config)
        if self.fail_create:
            raise RuntimeError("model failed to load")
        session = FakeSession(self.responder, delay=self.delay)
        self.sessions.append(session)
        return session


def topic_responder(topics_by_title: Dict[str, str], same: Callable[[str, str], bool]):
    """Responder answering topic prompts from a title map and YES/NO prompts via ``same``."""

    def respond(text: str) -> str:
        if text.startswith("Are these two topics"):
            lines = {l.split(":", 1)[0]: l.split(":", 1)[1].strip() for l in text.splitlines() if ":" in l}
            return "YES" if same(lines["Topic 1"], lines["Topic 2"]) else "NO"
        for title, topic in topics_by_title.items():
            if f"Title: {title}\n" in text:
                return topic
        raise AssertionError(f"unexpected prompt: {text!r}")

    return respond


def make_item(n: int, url: str, title: Optional[str] = None, topic: Optional[str] = None) -> ContentItem:
    title = title or f"Page {n}"
    page = PageRef(id=n, url=url, title=title)
    return ContentItem(handle=page, title=title, headings="", text=f"text of {title}", url=url, topic=topic)


@pytest.fixture
def items() -> List[ContentItem]:
    return [
        make_item(1, "https://docs.python.org/3/library/asyncio.html", "asyncio docs"),
        make_item(2, "https://www.bbc.co.uk/food/recipes/lasagne", "Lasagne recipe"),
        make_item(3, "https://realpython.com/async-io-python/", "Async IO in Python"),
        make_item(4, "https://www.allrecipes.com/pasta", "Pasta recipes"),
        make_item(5, "https://nasa.gov/artemis", "Artemis program"),
    ]
