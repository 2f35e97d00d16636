"""Error taxonomy shared by every pipeline component.

``ConfigurationError``
    Missing service endpoint or model.  Fatal, never retried.
``ValidationError``
    Bad caller input (malformed URL, nothing to synthesise).  Raised before
    any network call where possible.
``UpstreamError``
    The scrape service or LLM misbehaved: non-2xx, failed or timed-out batch
    job, unusable planner output.  Surfaced with context, never retried.

A single URL failing inside a batch is not an exception at all: it becomes a
``PageRecord`` with ``error`` set.
"""

from __future__ import annotations


class ReconError(Exception):
    """Base class for all errors raised by the pipeline."""


class ConfigurationError(ReconError):
    pass


class ValidationError(ReconError):
    def __init__(self, message: str, value: str | None = None) -> None:
        super().__init__(message)
        self.value = value


class UpstreamError(ReconError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BatchJobError(UpstreamError):
    """The scrape service reported a batch job as failed or cancelled."""


class BatchTimeoutError(UpstreamError):
    """A batch job did not complete within the polling ceiling."""


class LLMError(UpstreamError):
    """The language model request failed or returned no content."""


class PlannerError(UpstreamError):
    """The planner's reply could not be validated as a plan."""
