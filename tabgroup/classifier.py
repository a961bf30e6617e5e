"""Topic classification on top of an optional language-model capability.

The capability itself (``Classifier``) may be missing at runtime; callers ask
for its ``availability()`` before opening a session. ``TopicClassifier`` wraps
one open session and never lets a backend failure escape: topic extraction
degrades to the page title and topic comparison degrades to "different".
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import ClassifierError, ExtractionTimeout, SimilarityJudgmentFailure
from .models import ContentItem
from . import similarity


class Availability(str, Enum):
    UNAVAILABLE = "unavailable"
    DOWNLOADING = "downloading"
    AVAILABLE = "available"


@dataclass
class ClassifierConfig:
    language: str = "en"
    temperature: float = 0.3
    # sampling breadth for backends that accept it; None leaves it to the backend
    top_k: Optional[int] = None


class ClassifierSession:
    """One conversation with the model. Owned by a single grouping run."""

    async def prompt(self, text: str) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    async def destroy(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class Classifier:
    async def availability(self) -> Availability:  # pragma: no cover - interface
        raise NotImplementedError

    async def create(self, config: ClassifierConfig) -> ClassifierSession:  # pragma: no cover - interface
        raise NotImplementedError


class UnavailableClassifier(Classifier):
    """Stand-in used when no model is configured; always routes to fallback grouping."""

    async def availability(self) -> Availability:
        return Availability.UNAVAILABLE

    async def create(self, config: ClassifierConfig) -> ClassifierSession:
        raise ClassifierError("no language model configured")


TOPIC_TIMEOUT_SEC = 10.0
FALLBACK_TOPIC_CHARS = 50
CONTEXT_TEXT_CHARS = 300
ACCEPT_THRESHOLD = 0.8
REJECT_THRESHOLD = 0.2

TOPIC_PROMPT = """In 3-5 words, what is the SPECIFIC topic of this webpage? Be precise.

{context}

Topic:"""

SAME_TOPIC_PROMPT = """Are these two topics about the same specific subject? Answer only YES or NO.

Topic 1: {topic_a}
Topic 2: {topic_b}

Answer:"""


def fallback_topic(item: ContentItem) -> str:
    return item.title[:FALLBACK_TOPIC_CHARS]


def build_topic_context(item: ContentItem) -> str:
    return "\n".join(
        [
            f"Title: {item.title}",
            f"Headings: {item.headings or 'None'}",
            f"Content: {item.text[:CONTEXT_TEXT_CHARS]}",
        ]
    ).strip()


class TopicClassifier:
    def __init__(
        self,
        session: ClassifierSession,
        *,
        topic_timeout: float = TOPIC_TIMEOUT_SEC,
        accept_threshold: float = ACCEPT_THRESHOLD,
        reject_threshold: float = REJECT_THRESHOLD,
    ) -> None:
        self.session = session
        self.topic_timeout = topic_timeout
        self.accept_threshold = accept_threshold
        self.reject_threshold = reject_threshold

    async def _ask_topic(self, item: ContentItem) -> str:
        prompt = TOPIC_PROMPT.format(context=build_topic_context(item))
        answer = await self.session.prompt(prompt)
        topic = (answer or "").strip()
        if not topic:
            raise ClassifierError("empty topic answer")
        return topic

    async def _ask_topic_bounded(self, item: ContentItem) -> str:
        # wait_for cancels the pending prompt on expiry; a backend call already
        # running in a worker thread finishes on its own and its answer is dropped
        try:
            return await asyncio.wait_for(self._ask_topic(item), timeout=self.topic_timeout)
        except asyncio.TimeoutError as e:
            raise ExtractionTimeout(f"no topic after {self.topic_timeout:g}s") from e

    async def extract_topic(self, item: ContentItem) -> str:
        """Return a short topic for ``item``; falls back to its truncated title."""
        try:
            topic = await self._ask_topic_bounded(item)
        except Exception as e:  # noqa: BLE001 - any failure degrades to the title
            topic = fallback_topic(item)
            logging.warning("Topic extraction failed for %r, using title: %s", item.title[:40], e)
            return topic
        logging.debug("%s -> topic: %s", item.title[:40], topic)
        return topic

    async def _judge_same_topic(self, topic_a: str, topic_b: str) -> bool:
        prompt = SAME_TOPIC_PROMPT.format(topic_a=topic_a, topic_b=topic_b)
        try:
            answer = await self.session.prompt(prompt)
        except Exception as e:
            raise SimilarityJudgmentFailure(str(e)) from e
        if not isinstance(answer, str):
            raise SimilarityJudgmentFailure(f"unexpected answer type {type(answer).__name__}")
        return "YES" in answer.strip().upper()

    async def topics_equivalent(self, topic_a: str, topic_b: str) -> bool:
        overlap = similarity.score(topic_a, topic_b)
        if overlap > self.accept_threshold:
            return True
        if overlap < self.reject_threshold:
            return False
        try:
            return await self._judge_same_topic(topic_a, topic_b)
        except SimilarityJudgmentFailure as e:
            logging.warning("Similarity check failed for %r vs %r: %s", topic_a, topic_b, e)
            return False


async def probe_availability(classifier: Optional[Classifier]) -> Availability:
    """Availability of ``classifier``; a missing or failing capability counts as unavailable."""
    if classifier is None:
        return Availability.UNAVAILABLE
    try:
        state = await classifier.availability()
    except Exception as e:  # noqa: BLE001 - detection failure means no model
        logging.warning("Classifier availability check failed: %s", e)
        return Availability.UNAVAILABLE
    try:
        return Availability(state)
    except ValueError:
        logging.warning("Unknown classifier availability %r", state)
        return Availability.UNAVAILABLE
