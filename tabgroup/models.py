from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PageRef:
    """Handle to an open page: what the content provider reads and the sink groups."""

    id: Optional[int]
    url: str
    title: str = ""
    html: Optional[str] = None


@dataclass
class ContentItem:
    handle: Any
    title: str
    headings: str
    text: str
    url: str
    topic: Optional[str] = None
    # set by the content provider when extraction degraded to the handle's title
    error: Optional[str] = None


@dataclass
class Cluster:
    name: str
    topic: str
    members: List[Any] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass
class TabGroup:
    group_id: int
    title: str
    color: str
    collapsed: bool
    member_ids: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_id": self.group_id,
            "title": self.title,
            "color": self.color,
            "collapsed": self.collapsed,
            "member_ids": list(self.member_ids),
        }
