from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, List, Optional, Sequence, Tuple

from tqdm import tqdm

from .classifier import (
    ACCEPT_THRESHOLD,
    REJECT_THRESHOLD,
    TOPIC_TIMEOUT_SEC,
    Availability,
    Classifier,
    ClassifierConfig,
    ClassifierSession,
    TopicClassifier,
    probe_availability,
)
from .clustering import build_clusters, fallback_grouping
from .content import ContentProvider, filter_groupable
from .errors import NoContentError
from .models import Cluster, ContentItem
from .sink import GroupingSink


@dataclass
class GroupingResult:
    clusters: List[Cluster] = field(default_factory=list)
    items: List[ContentItem] = field(default_factory=list)
    created: int = 0
    used_fallback: bool = False


class GroupingEngine:
    """Coordinate topic extraction, clustering and applying groups.

    Each ``run`` opens its own classifier session and releases it before
    returning, whatever happens in between. Any classifier trouble after the
    session is open degrades the run to domain grouping.
    """

    def __init__(
        self,
        classifier: Optional[Classifier] = None,
        *,
        provider: Optional[ContentProvider] = None,
        sink: Optional[GroupingSink] = None,
        session_config: Optional[ClassifierConfig] = None,
        topic_timeout: float = TOPIC_TIMEOUT_SEC,
        accept_threshold: float = ACCEPT_THRESHOLD,
        reject_threshold: float = REJECT_THRESHOLD,
        progress: bool = False,
    ) -> None:
        self.classifier = classifier
        self.provider = provider
        self.sink = sink
        self.session_config = session_config or ClassifierConfig()
        self.topic_timeout = topic_timeout
        self.accept_threshold = accept_threshold
        self.reject_threshold = reject_threshold
        self.progress = progress

    @asynccontextmanager
    async def _session(self, classifier: Classifier) -> AsyncIterator[ClassifierSession]:
        session = await classifier.create(self.session_config)
        try:
            yield session
        finally:
            try:
                await session.destroy()
            except Exception as e:  # noqa: BLE001 - release failure must not mask the run's outcome
                logging.warning("Failed to release classifier session: %s", e)

    def _fallback(self, items: Sequence[ContentItem]) -> List[Cluster]:
        clusters = fallback_grouping(items)
        logging.info("Domain grouping produced %d groups", len(clusters))
        return clusters

    async def _classify_and_cluster(
        self, classifier: Classifier, items: Sequence[ContentItem]
    ) -> List[Cluster]:
        async with self._session(classifier) as session:
            topics = TopicClassifier(
                session,
                topic_timeout=self.topic_timeout,
                accept_threshold=self.accept_threshold,
                reject_threshold=self.reject_threshold,
            )
            logging.info("Analyzing topics of %d pages", len(items))
            # one prompt at a time: the session is shared by every call
            for item in tqdm(items, desc="topics", ncols=100, disable=not self.progress):
                item.topic = await topics.extract_topic(item)
            return await build_clusters(items, topics.topics_equivalent)

    async def _run(self, items: Sequence[ContentItem]) -> Tuple[List[Cluster], bool]:
        """Cluster ``items``; the flag tells whether domain grouping was used."""
        if not items:
            raise NoContentError("No content to group")

        classifier = self.classifier
        availability = await probe_availability(classifier)
        if classifier is None or availability is not Availability.AVAILABLE:
            logging.warning("Classifier %s, using domain grouping", availability.value)
            return self._fallback(items), True

        try:
            clusters = await self._classify_and_cluster(classifier, items)
        except Exception as e:  # noqa: BLE001 - any classifier failure degrades the run
            logging.warning("Topic grouping failed, using domain grouping: %s", e)
            return self._fallback(items), True
        logging.info("Found %d topic groups", len(clusters))
        return clusters, False

    async def run(self, items: Sequence[ContentItem]) -> List[Cluster]:
        """Partition ``items`` into topic clusters, largest first."""
        clusters, _ = await self._run(items)
        return clusters

    async def group(self, handles: Sequence[Any]) -> GroupingResult:
        """Read, cluster and apply groups for a batch of open pages."""
        if self.provider is None or self.sink is None:
            raise ValueError("group() needs both a content provider and a sink")
        pages = filter_groupable(handles)
        if not pages:
            raise NoContentError("No valid pages to group (all are system pages)")
        items = self.provider.extract(pages)
        if not items:
            raise NoContentError("Could not extract content from any page")

        clusters, used_fallback = await self._run(items)
        created = self.sink.apply(clusters)
        return GroupingResult(
            clusters=clusters,
            items=list(items),
            created=created,
            used_fallback=used_fallback,
        )
