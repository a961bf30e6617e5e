"""
Semantic grouping of open pages.

Modules:
- models: ContentItem, Cluster, PageRef, TabGroup dataclasses
- similarity: Word-overlap score between two topics
- classifier: Optional model capability and the TopicClassifier wrapper
- providers: OpenAI-compatible chat backend
- clustering: Greedy topic clustering and domain fallback
- content: HTML content extraction for pages
- sink: Applying clusters as labelled groups
- engine: GroupingEngine orchestration
"""

from .classifier import Availability, Classifier, ClassifierConfig, TopicClassifier, UnavailableClassifier
from .engine import GroupingEngine, GroupingResult
from .errors import GroupApplyError, NoContentError
from .models import Cluster, ContentItem, PageRef

__all__ = [
    "Availability",
    "Classifier",
    "ClassifierConfig",
    "Cluster",
    "ContentItem",
    "GroupApplyError",
    "GroupingEngine",
    "GroupingResult",
    "NoContentError",
    "PageRef",
    "TopicClassifier",
    "UnavailableClassifier",
]
