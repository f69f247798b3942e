"""Async client for the Ollama ``/api/generate`` endpoint.

:class:`OllamaClient` POSTs exactly ``{"model", "prompt", "format": "json"}``
and returns the model's ``response`` string.  The body carries no ``stream``
field, so the endpoint must answer with a single JSON object (an Ollama server
or proxy with streaming off).  A streamed, newline-delimited reply fails
envelope validation like any other malformed body.  Each request is retried
under a :class:`~piiscan.core.retry.RetryPolicy` (3 attempts, 1 s apart by
default).

An attempt fails when:

* the request cannot be sent or times out (``httpx.RequestError``),
* the server answers with a non-2xx status (``httpx.HTTPStatusError``),
* the body is not a JSON object with a string ``response`` field.

Every failed attempt increments ``piiscan_remote_errors_total`` on the
injected :class:`~piiscan.core.metrics.ScanMetrics` (when one is given).
After the final failed attempt :class:`ApiError` is raised carrying the last
attempt's message.

Usage::

    async with httpx.AsyncClient() as http:
        client = OllamaClient("http://localhost:11434/api/generate",
                              "deepseek-coder", http_client=http)
        text = await client.generate("Say hello")
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from piiscan.core.detectors.base import DetectorError
from piiscan.core.metrics import ScanMetrics
from piiscan.core.retry import RetryExhaustedError, RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:11434/api/generate"
DEFAULT_MODEL = "deepseek-coder"
DEFAULT_TIMEOUT_MS = 60_000


class ApiError(DetectorError):
    """Raised when the remote model could not produce a usable response."""


class InvalidResponseError(Exception):
    """A 2xx response whose body is not a ``{"response": str}`` object."""


class _GenerateResponse(BaseModel):
    response: str


def _error_type(exc: BaseException) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        return "http_status"
    if isinstance(exc, InvalidResponseError):
        return "invalid_body"
    return "transport"


# ---------------------------------------------------------------------------
# OllamaClient
# ---------------------------------------------------------------------------


class OllamaClient:
    """Minimal Ollama generation client with retry.

    Args:
        api_url: Full URL of the generate endpoint.
        model: Model name sent with each request.
        timeout_ms: Per-request timeout in milliseconds.
        retry_policy: Retry configuration.  Defaults to 3 attempts 1 s apart.
        http_client: Optional shared :class:`httpx.AsyncClient`.  When
            ``None`` a new client is created for each attempt.
        metrics: Optional metrics sink for failed attempts.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        model: str = DEFAULT_MODEL,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        retry_policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
        metrics: ScanMetrics | None = None,
    ) -> None:
        self.api_url = api_url
        self.model = model
        self.timeout = httpx.Timeout(timeout_ms / 1000.0)
        self.retry_policy = retry_policy or RetryPolicy()
        self._http_client = http_client
        self._metrics = metrics

    async def generate(self, prompt: str) -> str:
        """Send *prompt* and return the model's ``response`` text.

        Raises:
            ApiError: If every attempt failed.
        """
        payload = {"model": self.model, "prompt": prompt, "format": "json"}

        try:
            return await self.retry_policy.run(
                lambda: self._post(payload),
                retry_on=(httpx.HTTPError, InvalidResponseError),
                on_failure=self._record_failure,
            )
        except RetryExhaustedError as exc:
            raise ApiError(str(exc.last_error)) from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record_failure(self, attempt: int, exc: BaseException) -> None:
        error_type = _error_type(exc)
        logger.warning(
            "Ollama request failed: url=%s model=%s attempt=%d error_type=%s: %s",
            self.api_url,
            self.model,
            attempt,
            error_type,
            exc,
        )
        if self._metrics is not None:
            self._metrics.record_remote_error(error_type)

    async def _post(self, payload: dict[str, Any]) -> str:
        """Execute a single POST and validate the response envelope."""
        if self._http_client is not None:
            response = await self._http_client.post(
                self.api_url, json=payload, timeout=self.timeout
            )
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.api_url, json=payload)

        response.raise_for_status()

        try:
            body = _GenerateResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise InvalidResponseError(
                f"Invalid response body from {self.api_url}: {exc.error_count()} error(s)"
            ) from exc
        return body.response
