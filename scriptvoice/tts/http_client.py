"""Shared HTTP plumbing for TTS provider clients.

Responsibilities:
- Send JSON POST requests to provider REST APIs with a per-request timeout.
- Decode provider error bodies into short, redacted diagnostics.
- Raise `SynthesisFailure` with a classified failure kind for the failover loop.
"""

from __future__ import annotations

import json
import re
import socket
from typing import Any

import requests

from ..errors import SynthesisFailure
from .rate_limiter import RateLimiter


class ProviderHttpClient:
    """Base class for requests-based provider clients.

    Subclasses supply `provider_id`, `provider_label`, `_provider_error_fields`, and
    `_classify_http_failure`.
    """

    provider_id = "provider"
    provider_label = "Provider"
    _MAX_PROVIDER_MESSAGE_CHARS = 180
    _FAILURE_HEADLINES = {
        "invalid_api_key": "authentication failed",
        "quota_exceeded": "quota is exhausted for this API key",
        "rate_limited": "rate limit reached for this API key",
        "not_found": "rejected the selected voice or model",
        "content_policy": "refused the content",
        "timeout": "request timed out",
        "server_error": "server error",
        "validation": "rejected the request",
    }

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 60.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize shared HTTP settings."""

        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()

    def _post(
        self,
        *,
        endpoint_path: str,
        api_key: str,
        headers: dict[str, str],
        payload: dict[str, Any],
        params: dict[str, str] | None = None,
    ) -> bytes:
        """POST a JSON payload and return the raw response body.

        Raises:
            SynthesisFailure: On any HTTP, transport, or timeout failure.
        """

        if not api_key.strip():
            raise SynthesisFailure(
                f"Missing {self.provider_label} API key.",
                failure_kind="invalid_api_key",
            )

        self.rate_limiter.acquire(f"{self.provider_id}:{hash(api_key)}")
        endpoint = f"{self.base_url}{endpoint_path}"
        try:
            response = requests.post(
                endpoint,
                headers={**headers, "Content-Type": "application/json"},
                params=params,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            return bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_failure(exc, api_key) from exc
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = f"{self.provider_label} request timed out."
            else:
                detail = (
                    f"{self.provider_label} request transport error: "
                    f"{self._short_message(self._redact_sensitive_tokens(str(exc), api_key))}"
                )
            raise SynthesisFailure(detail, failure_kind=failure_kind) from exc
        except TimeoutError as exc:
            raise SynthesisFailure(
                f"{self.provider_label} request timed out.",
                failure_kind="timeout",
            ) from exc

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        return bytes(response.content or b"").decode("utf-8", errors="replace").strip()

    @classmethod
    def _redact_sensitive_tokens(cls, text: str, api_key: str | None = None) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = text
        if api_key:
            redacted = redacted.replace(api_key, "[redacted-key]")
        redacted = re.sub(r"\bAIza[0-9A-Za-z_-]{20,}", "[redacted-key]", redacted)
        redacted = re.sub(r"\bsk[-_][A-Za-z0-9_-]{8,}\b", "[redacted-key]", redacted)
        redacted = re.sub(r"([?&]key=)[^&\s]+", r"\1[redacted-key]", redacted)
        return redacted

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap diagnostic message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    def _extract_provider_message(self, body: str, api_key: str) -> tuple[str, str | None]:
        """Extract a concise provider message and optional provider error code."""

        if not body:
            return "", None
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return self._short_message(self._redact_sensitive_tokens(body, api_key)), None

        message, provider_code = self._provider_error_fields(payload)
        if message is None:
            message = body
        return self._short_message(self._redact_sensitive_tokens(message, api_key)), provider_code

    def _provider_error_fields(self, payload: Any) -> tuple[str | None, str | None]:
        """Return `(message, code)` from a decoded provider error payload."""

        raise NotImplementedError

    def _classify_http_failure(
        self,
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify an HTTP error into a failure kind."""

        raise NotImplementedError

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic failure kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    def _http_error_to_failure(self, exc: requests.HTTPError, api_key: str) -> SynthesisFailure:
        """Convert an HTTP error into a classified synthesis failure."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = self._decode_error_body(exc)
        provider_message, provider_code = self._extract_provider_message(body, api_key)
        failure_kind = self._classify_http_failure(status_code, provider_message, provider_code)

        headline = self._FAILURE_HEADLINES.get(failure_kind, "request failed")
        if provider_message:
            detail = f"{self.provider_label} {headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{self.provider_label} {headline} (HTTP {status_code})."

        return SynthesisFailure(
            detail,
            failure_kind=failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )
