from __future__ import annotations

import re
from typing import Set

_WS_RE = re.compile(r"\s+")

# words of this length or shorter carry no topic signal ("the", "and", "of")
MIN_WORD_LEN = 3


def significant_words(topic: str) -> Set[str]:
    return {w for w in _WS_RE.split(topic.lower()) if len(w) > MIN_WORD_LEN}


def score(topic_a: str, topic_b: str) -> float:
    """Jaccard overlap of the significant words of two topics, in [0, 1]."""
    w1 = significant_words(topic_a)
    w2 = significant_words(topic_b)
    if not w1 or not w2:
        return 0.0
    return len(w1 & w2) / len(w1 | w2)
