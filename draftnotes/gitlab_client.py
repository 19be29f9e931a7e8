"""Async GitLab API transport with retry and response decoding helpers."""

import asyncio
import logging
from types import TracebackType
from typing import Any, Self, TYPE_CHECKING, TypeVar
from collections.abc import Mapping

import httpx
from pydantic import TypeAdapter, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

if TYPE_CHECKING:
    from draftnotes.config import ClientSettings

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_RETRY_FAILURE_MESSAGE = "GitLab API request failed after retries"
_RATE_LIMIT_STATUS = 429
_SERVER_ERROR_LOWER = 500
_SERVER_ERROR_UPPER = 600
_NON_IDEMPOTENT_METHODS = frozenset({"POST", "PATCH"})


class GitLabError(RuntimeError):
    """Base class for failures surfaced by the GitLab client."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response: httpx.Response | None = None,
    ) -> None:
        """Attach HTTP status metadata and the raw response to the exception."""
        super().__init__(message)
        if status_code is None and response is not None:
            status_code = response.status_code
        self.status_code = status_code
        self.response = response


class GitLabAPIError(GitLabError):
    """Raised when the GitLab API answers with a non-2xx status or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response: httpx.Response | None = None,
        server_message: str | None = None,
    ) -> None:
        """Store the server-provided error message next to the status metadata."""
        super().__init__(message, status_code=status_code, response=response)
        self.server_message = server_message

    @classmethod
    def from_response(cls, response: httpx.Response) -> Self:
        """Build an error from a failed response, extracting GitLab's error payload."""
        server_message = _error_message(response)
        return cls(
            f"GitLab API returned {response.status_code}: {server_message}",
            response=response,
            server_message=server_message,
        )


class GitLabDecodeError(GitLabError):
    """Raised when a response body cannot be decoded into the expected shape."""


class RateLimitError(RuntimeError):
    """Raised when the GitLab API responds with a rate limit status."""

    def __init__(self, response: httpx.Response, retry_after: float | None = None) -> None:
        """Store the retry delay suggested by the server."""
        super().__init__("GitLab API rate limit encountered")
        self.response = response
        self.retry_after = retry_after or 1.0


_RETRYABLE_ERRORS = (RateLimitError, httpx.HTTPStatusError, httpx.TransportError)
# The request never reached the server, so resending cannot duplicate a write.
_UNSENT_ERRORS = (RateLimitError, httpx.ConnectError, httpx.ConnectTimeout)


class GitLabClient:
    """Asynchronous transport for the GitLab REST API."""

    def __init__(self, settings: "ClientSettings") -> None:
        """Configure the HTTP client with authentication headers and retry policy."""
        headers = {
            "User-Agent": "draftnotes/0.1",
            "Accept": "application/json",
        }
        token = settings.gitlab_token.get_secret_value()
        if token:
            headers["PRIVATE-TOKEN"] = token
        self._client = httpx.AsyncClient(
            base_url=str(settings.gitlab_api_base),
            headers=headers,
            timeout=httpx.Timeout(settings.timeout),
        )
        self._max_attempts = settings.max_attempts

    async def __aenter__(self) -> Self:
        """Enter the async context manager and return the client."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Ensure the underlying HTTP client is closed when exiting the context."""
        del exc_type, exc, tb
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying httpx client."""
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Perform an HTTP request with retry and rate limit handling.

        Returns the raw response for any 2xx status. Every other outcome raises
        `GitLabAPIError`, with the failed response attached when one was received.
        POST and PATCH are only resent after a rate limit or a failed connection.
        """
        retryable = _UNSENT_ERRORS if method.upper() in _NON_IDEMPOTENT_METHODS else _RETRYABLE_ERRORS
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            retry=retry_if_exception_type(retryable),
            wait=wait_exponential_jitter(initial=1, max=10),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    LOGGER.debug("%s %s", method, path)
                    response = await self._client.request(
                        method,
                        path,
                        params=params,
                        json=json,
                        headers=headers,
                    )
                    if response.status_code == _RATE_LIMIT_STATUS:
                        retry_after = _parse_retry_after(response.headers.get("Retry-After"))
                        if attempt.retry_state.attempt_number < self._max_attempts:
                            LOGGER.warning("Rate limit hit, retrying in %ss", retry_after)
                            await asyncio.sleep(retry_after)
                        raise RateLimitError(response, retry_after)
                    try:
                        response.raise_for_status()
                    except httpx.HTTPStatusError as exc:
                        status_code = exc.response.status_code
                        if _SERVER_ERROR_LOWER <= status_code < _SERVER_ERROR_UPPER:
                            raise
                        raise GitLabAPIError.from_response(exc.response) from exc
                    return response
        except RateLimitError as exc:
            raise GitLabAPIError.from_response(exc.response) from exc
        except httpx.HTTPStatusError as exc:
            raise GitLabAPIError.from_response(exc.response) from exc
        except httpx.TransportError as exc:
            message = f"GitLab API request failed: {exc}"
            raise GitLabAPIError(message) from exc
        raise GitLabAPIError(_RETRY_FAILURE_MESSAGE)

    def parse_json(self, response: httpx.Response) -> Any:
        """Decode a JSON response or raise a GitLabDecodeError on failure."""
        try:
            return response.json()
        except ValueError as exc:
            content_type = response.headers.get("Content-Type", "unknown")
            message = (
                "GitLab API returned an invalid JSON payload "
                f"(status {response.status_code}, content-type {content_type})"
            )
            raise GitLabDecodeError(message, response=response) from exc

    def decode(self, response: httpx.Response, adapter: TypeAdapter[T]) -> T:
        """Decode a JSON response into the type described by ``adapter``."""
        payload = self.parse_json(response)
        try:
            return adapter.validate_python(payload)
        except ValidationError as exc:
            message = (
                "GitLab API returned an unexpected payload "
                f"(status {response.status_code}): {exc.error_count()} validation error(s)"
            )
            raise GitLabDecodeError(message, response=response) from exc


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        detail = payload.get("message") or payload.get("error")
        if detail:
            return _flatten_detail(detail)
    return response.text


def _flatten_detail(detail: object) -> str:
    # GitLab reports validation failures as {"field": ["reason", ...]}.
    if isinstance(detail, dict):
        return ", ".join(f"{key}: {_flatten_detail(value)}" for key, value in sorted(detail.items()))
    if isinstance(detail, list):
        return ", ".join(_flatten_detail(item) for item in detail)
    return str(detail)


def _parse_retry_after(value: str | None) -> float:
    if not value:
        return 1.0
    try:
        return float(value)
    except ValueError:  # pragma: no cover - defensive against non-numeric headers
        return 1.0
