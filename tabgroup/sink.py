from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from .errors import GroupApplyError
from .models import Cluster, TabGroup


GROUP_COLORS = ["blue", "red", "yellow", "green", "pink", "purple", "cyan", "orange", "grey"]
MAX_TITLE_CHARS = 30
TRUNCATED_TITLE_CHARS = 27
COLLAPSE_ABOVE = 5


def group_color(index: int) -> str:
    return GROUP_COLORS[index % len(GROUP_COLORS)]


def group_title(name: str, count: int) -> str:
    display = name[:TRUNCATED_TITLE_CHARS] + "..." if len(name) > MAX_TITLE_CHARS else name
    return f"{display} ({count})"


class GroupingSink:
    def apply(self, clusters: Sequence[Cluster]) -> int:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryGroupingSink(GroupingSink):
    """Materializes clusters as labelled, colored groups of page ids.

    Every ``apply`` starts from a clean slate, so applying the same clusters
    twice leaves the same groups as applying them once.
    """

    def __init__(self) -> None:
        self.groups: Dict[int, TabGroup] = {}

    @staticmethod
    def resolve(handle: Any) -> Optional[int]:
        return getattr(handle, "id", None)

    def clear(self) -> None:
        if self.groups:
            logging.info("Ungrouping %d existing groups", len(self.groups))
        self.groups = {}

    def _create_group(self, index: int, cluster: Cluster, member_ids: List[int]) -> TabGroup:
        group = TabGroup(
            group_id=len(self.groups) + 1,
            title=group_title(cluster.name, cluster.size),
            color=group_color(index),
            collapsed=cluster.size > COLLAPSE_ABOVE,
            member_ids=member_ids,
        )
        self.groups[group.group_id] = group
        return group

    def apply(self, clusters: Sequence[Cluster]) -> int:
        self.clear()
        created = 0
        for i, cluster in enumerate(clusters):
            member_ids = [mid for mid in (self.resolve(h) for h in cluster.members) if mid is not None]
            if not member_ids:
                logging.warning("No valid page ids for group %r", cluster.name)
                continue
            try:
                group = self._create_group(i, cluster, member_ids)
            except Exception as e:  # noqa: BLE001 - one bad group must not sink the rest
                logging.error("Failed to create group %r: %s", cluster.name, e)
                continue
            created += 1
            logging.info("Created group %r with %d pages", group.title, len(member_ids))

        if clusters and created == 0:
            raise GroupApplyError("No groups were created")
        return created

    def snapshot(self) -> List[Dict[str, Any]]:
        return [g.to_dict() for g in self.groups.values()]
