"""Client for the external scrape service (Firecrawl-compatible API).

Two fetch paths are offered:

``fetch_one``
    ``POST /v1/scrape`` for a single URL.  Ordinary failures (non-2xx,
    transport errors, malformed bodies) come back as an error-bearing
    :class:`PageRecord`; nothing is raised.

``fetch_batch``
    ``POST /v1/batch/scrape`` then poll ``GET /v1/batch/scrape/{id}`` at a
    fixed cadence until the job completes, fails, or the wall-clock ceiling
    is reached.  Job-level problems raise; per-URL problems become
    error-bearing records.

``sleep`` and ``clock`` are injectable so the poll loop can be driven by a
fake clock in tests.
"""

from __future__ import annotations

import time
from typing import Callable, Optional, Sequence
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError as SchemaError

from recon.config import Settings
from recon.errors import (
    BatchJobError,
    BatchTimeoutError,
    ConfigurationError,
    UpstreamError,
    ValidationError,
)
from recon.scraper.models import (
    BatchStatusResponse,
    BatchSubmitResponse,
    PageRecord,
    ScrapeDocument,
    ScrapeResponse,
)

DEFAULT_FORMATS: tuple[str, ...] = ("markdown",)

_FAILED_STATUSES = {"failed", "cancelled"}


def validate_url(url: str) -> str:
    """Return *url* unchanged if it is a well-formed absolute http(s) URL.

    Raises:
        ValidationError: naming the offending URL otherwise.
    """
    try:
        parsed = urlparse(url)
        parsed.port  # raises on a malformed host or port
    except ValueError as exc:
        raise ValidationError(f"Invalid URL format: {url}", value=url) from exc
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Invalid URL format: {url}", value=url)
    return url


def _error_detail(response: httpx.Response) -> str:
    """Pull the service's diagnostic message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or response.text[:200]
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            err = err.get("message")
        detail = err or body.get("message") or body.get("detail")
        if detail:
            return str(detail)
    return response.reason_phrase


def _status_message(prefix: str, response: httpx.Response) -> str:
    return f"{prefix} failed with status {response.status_code}: {_error_detail(response)}"


def _to_record(doc: ScrapeDocument, url: str) -> PageRecord:
    meta = doc.metadata
    return PageRecord(
        url=url,
        title=meta.title or doc.title or "Untitled",
        description=meta.description or "",
        language=meta.language or "",
        raw_markdown=doc.markdown or "",
        raw_html=doc.html or doc.raw_html or "",
    )


class ScrapeClient:
    """Synchronous client for one scrape service endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        timeout: float = 45.0,
        poll_interval: float = 5.0,
        max_wait: float = 120.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._max_wait = max_wait
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "ScrapeClient":
        """Build a client from *settings*; raises if the service is not configured."""
        settings.require_scrape()
        options = {
            "timeout": settings.scrape_timeout,
            "poll_interval": settings.batch_poll_interval,
            "max_wait": settings.batch_max_wait,
        }
        options.update(overrides)
        return cls(settings.scrape_api_base, settings.scrape_api_key, **options)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _endpoint(self, path: str) -> str:
        if not self._base_url:
            raise ConfigurationError("API endpoint not configured")
        return f"{self._base_url}{path}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _client(self) -> httpx.Client:
        return httpx.Client(headers=self._headers(), timeout=self._timeout)

    def _payload(self, formats: Optional[Sequence[str]], **target) -> dict:
        return {
            **target,
            "formats": list(formats or DEFAULT_FORMATS),
            "onlyMainContent": True,
            "timeout": int(self._timeout * 1000),
        }

    # ------------------------------------------------------------------
    # Single URL
    # ------------------------------------------------------------------

    def fetch_one(self, url: str, formats: Optional[Sequence[str]] = None) -> PageRecord:
        """Scrape *url* and return its :class:`PageRecord`.

        Raises:
            ValidationError: If *url* is not a well-formed absolute URL.
            ConfigurationError: If no service endpoint is configured.
        """
        validate_url(url)
        endpoint = self._endpoint("/v1/scrape")

        try:
            with self._client() as client:
                response = client.post(endpoint, json=self._payload(formats, url=url))
        except httpx.HTTPError as exc:
            return PageRecord.failed(url, f"Scrape request failed: {exc}")

        if not response.is_success:
            return PageRecord.failed(url, _status_message("Scrape request", response))

        try:
            body = ScrapeResponse.model_validate(response.json())
        except (ValueError, SchemaError):
            return PageRecord.failed(url, "Scrape service returned a malformed response.")

        if not body.success or body.data is None:
            return PageRecord.failed(
                url, body.error or "Scrape service reported the request as unsuccessful."
            )
        return _to_record(body.data, url)

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def _submit_batch(
        self, client: httpx.Client, urls: Sequence[str], formats: Optional[Sequence[str]]
    ) -> str:
        try:
            response = client.post(
                self._endpoint("/v1/batch/scrape"),
                json=self._payload(formats, urls=list(urls)),
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Batch scrape request failed: {exc}") from exc

        if not response.is_success:
            raise UpstreamError(
                _status_message("Batch scrape request", response),
                status_code=response.status_code,
            )
        try:
            body = BatchSubmitResponse.model_validate(response.json())
        except (ValueError, SchemaError) as exc:
            raise UpstreamError("Batch scrape submission returned a malformed response.") from exc

        if not body.success or not body.id:
            raise UpstreamError(body.error or "Failed to submit batch scrape job.")
        return body.id

    def _poll_batch(self, client: httpx.Client, job_id: str) -> BatchStatusResponse:
        try:
            response = client.get(self._endpoint(f"/v1/batch/scrape/{job_id}"))
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Failed to check batch status: {exc}") from exc

        if not response.is_success:
            raise UpstreamError(
                _status_message("Batch status check", response),
                status_code=response.status_code,
            )
        try:
            return BatchStatusResponse.model_validate(response.json())
        except (ValueError, SchemaError) as exc:
            raise UpstreamError("Batch status returned a malformed response.") from exc

    def _map_batch(
        self, urls: Sequence[str], docs: Sequence[ScrapeDocument]
    ) -> list[PageRecord]:
        """Convert completed batch entries into records keyed by requested URL.

        Entries are matched back by ``sourceURL``, then ``url``, then by
        position in the submitted list.
        """
        requested = set(urls)
        claimed: set[str] = set()
        records: list[PageRecord] = []

        for index, doc in enumerate(docs):
            meta = doc.metadata
            url = next(
                (c for c in (meta.source_url, meta.url) if c in requested and c not in claimed),
                None,
            )
            if url is None and index < len(urls) and urls[index] not in claimed:
                url = urls[index]
            if url is None:
                url = meta.source_url or meta.url or "Unknown URL"
            claimed.add(url)

            code = meta.status_code
            ok = 200 <= code < 300 if code is not None else bool(doc.markdown)
            if not ok:
                reason = meta.error or "Failed to scrape this URL."
                suffix = f" (status {code})" if code is not None else ""
                records.append(PageRecord.failed(url, f"{reason}{suffix}"))
                continue
            records.append(_to_record(doc, url))

        return records

    def fetch_batch(
        self, urls: Sequence[str], formats: Optional[Sequence[str]] = None
    ) -> list[PageRecord]:
        """Scrape *urls* as one batch job and wait for it to complete.

        Returns:
            One :class:`PageRecord` per result entry; failed entries carry
            ``error``.

        Raises:
            ValidationError: If any URL is malformed (before any network call).
            UpstreamError: If submission or polling fails.
            BatchJobError: If the job is reported ``failed`` or ``cancelled``.
            BatchTimeoutError: If the job does not finish within ``max_wait``.
        """
        if not urls:
            return []
        for url in urls:
            validate_url(url)

        with self._client() as client:
            job_id = self._submit_batch(client, urls, formats)

            started = self._clock()
            while self._clock() - started < self._max_wait:
                self._sleep(self._poll_interval)
                status = self._poll_batch(client, job_id)

                if status.status == "completed":
                    return self._map_batch(urls, status.data)
                if status.status in _FAILED_STATUSES:
                    raise BatchJobError(f"Batch scrape job {status.status}.")

        raise BatchTimeoutError(
            f"Batch scrape job timed out after {self._max_wait:.0f}s."
        )

    def fetch(
        self, urls: Sequence[str], formats: Optional[Sequence[str]] = None
    ) -> list[PageRecord]:
        """Scrape *urls*: one URL goes through ``fetch_one``, several as a batch."""
        if len(urls) == 1:
            return [self.fetch_one(urls[0], formats)]
        return self.fetch_batch(urls, formats)
