from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlsplit

import numpy as np

from .models import Cluster, ContentItem


TopicJudge = Callable[[str, str], Awaitable[bool]]


def sort_by_size(clusters: List[Cluster]) -> List[Cluster]:
    # list.sort is stable with reverse=True, so equal sizes keep first-seen order
    clusters.sort(key=lambda c: c.size, reverse=True)
    return clusters


# ------------------------------
# Greedy topic clustering
# ------------------------------
async def build_clusters(items: Sequence[ContentItem], same_topic: TopicJudge) -> List[Cluster]:
    """Single-pass greedy partition of topic-annotated items.

    Each unvisited item seeds a cluster and absorbs every later unvisited item
    whose topic ``same_topic`` judges equivalent to the seed's. Decisions are
    never revisited, so the result depends on input order.
    """
    n = len(items)
    visited = np.zeros(n, dtype=bool)
    clusters: List[Cluster] = []

    for i in range(n):
        if visited[i]:
            continue
        seed = items[i]
        topic = seed.topic or ""
        cluster = Cluster(name=topic, topic=topic, members=[seed.handle])

        for j in range(i + 1, n):
            if visited[j]:
                continue
            if await same_topic(topic, items[j].topic or ""):
                cluster.members.append(items[j].handle)
                visited[j] = True

        visited[i] = True
        clusters.append(cluster)

    return sort_by_size(clusters)


# ------------------------------
# Domain fallback
# ------------------------------
def domain_of(url: str) -> Optional[str]:
    """Hostname of ``url`` without a leading ``www.``; None when it has no host."""
    host = urlsplit(url).hostname
    if not host:
        return None
    if host.startswith("www."):
        host = host[len("www."):]
    return host or None


def fallback_grouping(items: Sequence[ContentItem]) -> List[Cluster]:
    """Group items by domain; largest domains first, ties in order of first appearance."""
    by_domain: Dict[str, Cluster] = {}
    for it in items:
        try:
            domain = domain_of(it.url)
        except ValueError as e:
            domain = None
            logging.warning("URL parse error for %r: %s", it.url, e)
        if domain is None:
            logging.warning("Dropping %r from grouping: no host in URL %r", it.title[:40], it.url)
            continue
        cluster = by_domain.get(domain)
        if cluster is None:
            cluster = by_domain[domain] = Cluster(name=domain, topic=domain)
        cluster.members.append(it.handle)
    return sort_by_size(list(by_domain.values()))
