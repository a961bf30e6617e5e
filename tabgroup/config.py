from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .classifier import (
    ACCEPT_THRESHOLD,
    REJECT_THRESHOLD,
    TOPIC_TIMEOUT_SEC,
    ClassifierConfig,
)
from .utils import getenv_bool, getenv_float, getenv_int, getenv_optional_int


@dataclass
class Settings:
    """Runtime knobs, read from ``TABGROUP_*`` environment variables."""

    api_key: Optional[str] = None
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    language: str = "en"
    temperature: float = 0.3
    top_k: Optional[int] = None
    topic_timeout: float = TOPIC_TIMEOUT_SEC
    request_timeout: float = 30.0
    max_retries: int = 1
    accept_threshold: float = ACCEPT_THRESHOLD
    reject_threshold: float = REJECT_THRESHOLD
    fetch: bool = False
    fetch_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "Settings":
        d = cls()
        return cls(
            api_key=os.getenv("TABGROUP_API_KEY") or os.getenv("OPENAI_API_KEY") or None,
            base_url=os.getenv("TABGROUP_BASE_URL", d.base_url),
            model=os.getenv("TABGROUP_MODEL", d.model),
            language=os.getenv("TABGROUP_LANGUAGE", d.language),
            temperature=getenv_float("TABGROUP_TEMPERATURE", d.temperature),
            top_k=getenv_optional_int("TABGROUP_TOP_K"),
            topic_timeout=getenv_float("TABGROUP_TOPIC_TIMEOUT", d.topic_timeout),
            request_timeout=getenv_float("TABGROUP_REQUEST_TIMEOUT", d.request_timeout),
            max_retries=getenv_int("TABGROUP_MAX_RETRIES", d.max_retries),
            accept_threshold=getenv_float("TABGROUP_ACCEPT_THR", d.accept_threshold),
            reject_threshold=getenv_float("TABGROUP_REJECT_THR", d.reject_threshold),
            fetch=getenv_bool("TABGROUP_FETCH", d.fetch),
            fetch_timeout=getenv_float("TABGROUP_FETCH_TIMEOUT", d.fetch_timeout),
        )

    def classifier_config(self) -> ClassifierConfig:
        return ClassifierConfig(language=self.language, temperature=self.temperature, top_k=self.top_k)
