from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, Optional

import requests

from .classifier import Availability, Classifier, ClassifierConfig, ClassifierSession
from .errors import ClassifierError, ClassifierRequestError
from .utils import retry_with_backoff


def is_transient(exc: Exception) -> bool:
    """True for failures another attempt might get past."""
    if isinstance(exc, ClassifierRequestError):
        return exc.retryable
    # destroyed or abandoned sessions and malformed answers stay that way
    return not isinstance(exc, ClassifierError)


class ChatSession(ClassifierSession):
    """A session against an OpenAI-compatible ``/chat/completions`` endpoint.

    Prompts are independent requests sharing one HTTP connection pool; the
    blocking call runs in a worker thread so callers can put a deadline on it.
    A prompt whose caller stops waiting sends no further retries.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        config: ClassifierConfig,
        *,
        timeout: float = 30.0,
        max_retries: int = 1,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.config = config
        self.timeout = timeout
        self._http: Optional[requests.Session] = requests.Session()
        self._http.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )
        self._post = retry_with_backoff(
            max_retries=max_retries,
            initial_delay=0.5,
            should_retry=is_transient,
        )(self._post_once)

    @property
    def closed(self) -> bool:
        return self._http is None

    def _payload(self, text: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": f"Answer in language: {self.config.language}."},
                {"role": "user", "content": text},
            ],
            "temperature": self.config.temperature,
        }
        if self.config.top_k is not None:
            payload["top_k"] = self.config.top_k
        return payload

    def _post_once(self, payload: Dict[str, Any], abandoned: threading.Event) -> str:
        http = self._http
        if http is None:
            raise ClassifierError("session already destroyed")
        if abandoned.is_set():
            raise ClassifierError("prompt abandoned by its caller")
        resp = http.post(f"{self.base_url}/chat/completions", json=payload, timeout=self.timeout)
        if resp.status_code != 200:
            raise ClassifierRequestError(resp.status_code, resp.text[:200])
        data = resp.json()
        try:
            return str(data["choices"][0]["message"]["content"] or "")
        except (KeyError, IndexError, TypeError) as e:
            raise ClassifierError(f"malformed chat response: {e}") from e

    async def prompt(self, text: str) -> str:
        if self.closed:
            raise ClassifierError("session already destroyed")
        abandoned = threading.Event()
        try:
            answer = await asyncio.to_thread(self._post, self._payload(text), abandoned)
        except asyncio.CancelledError:
            # the worker thread cannot be stopped; keep it from retrying
            abandoned.set()
            raise
        logging.debug("prompt=%r answer=%r", text[:80], answer[:80])
        return answer

    async def destroy(self) -> None:
        http, self._http = self._http, None
        if http is not None:
            http.close()


class OpenAICompatibleClassifier(Classifier):
    """Classifier capability backed by a hosted chat model."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        *,
        timeout: float = 30.0,
        max_retries: int = 1,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries

    def _list_models(self) -> requests.Response:
        return requests.get(
            f"{self.base_url}/models",
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )

    async def availability(self) -> Availability:
        if not self.api_key:
            return Availability.UNAVAILABLE
        try:
            resp = await asyncio.to_thread(self._list_models)
        except requests.RequestException as e:
            logging.warning("Model endpoint unreachable: %s", e)
            return Availability.UNAVAILABLE
        if resp.status_code != 200:
            logging.warning("Model listing failed: %s", resp.status_code)
            return Availability.UNAVAILABLE
        try:
            ids = {str(m.get("id")) for m in resp.json().get("data", [])}
        except (ValueError, AttributeError):
            # listing exists but has an unexpected shape; the endpoint answers
            return Availability.AVAILABLE
        if ids and self.model not in ids:
            return Availability.DOWNLOADING
        return Availability.AVAILABLE

    async def create(self, config: ClassifierConfig) -> ClassifierSession:
        if not self.api_key:
            raise ClassifierError("API key not configured")
        return ChatSession(
            self.base_url,
            self.api_key,
            self.model,
            config,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )
