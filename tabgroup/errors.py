from __future__ import annotations


class TabGroupError(Exception):
    """Base class for errors raised by this package."""


class NoContentError(TabGroupError):
    """Nothing to group: the batch handed to the engine is empty."""


class GroupApplyError(TabGroupError):
    """The sink created no group from a non-empty cluster list."""


class ClassifierError(TabGroupError):
    """A classifier backend or session call failed."""


class ExtractionTimeout(ClassifierError):
    """Topic extraction for one item missed its deadline."""


class SimilarityJudgmentFailure(ClassifierError):
    """The model could not judge whether two topics match."""


class ClassifierRequestError(ClassifierError):
    """The model endpoint answered a request with an error status."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        super().__init__(f"chat API error: {status_code} {detail}".rstrip())
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        # rate limits and server faults may clear up; other 4xx never will
        return self.status_code == 429 or self.status_code >= 500
