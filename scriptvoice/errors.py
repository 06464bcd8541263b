"""Domain exceptions for synthesis attempts, generation jobs, and CLI diagnostics.

Key types:
- `PipelineStageError`: CLI-facing error with an actionable hint.
- `SynthesisFailure`: one classified provider attempt failure.
- `ProviderNotConfiguredError`: no API key available for a provider.
- `ChunkAbortedError` / `PoolExhaustedError`: terminal failures for one chunk.
- `GenerationError`: terminal failure of a whole generation job.
"""

from __future__ import annotations


CATEGORY_UNCONFIGURED = "unconfigured"
CATEGORY_AUTHENTICATION = "authentication"
CATEGORY_QUOTA = "quota"
CATEGORY_VALIDATION = "validation"
CATEGORY_CONTENT_POLICY = "content_policy"
CATEGORY_TRANSIENT = "transient"
CATEGORY_EMPTY_RESULT = "empty_result"

_FAILURE_KIND_CATEGORIES = {
    "invalid_api_key": CATEGORY_AUTHENTICATION,
    "quota_exceeded": CATEGORY_QUOTA,
    "rate_limited": CATEGORY_QUOTA,
    "server_error": CATEGORY_TRANSIENT,
    "timeout": CATEGORY_TRANSIENT,
    "transport": CATEGORY_TRANSIENT,
    "empty_result": CATEGORY_EMPTY_RESULT,
    "validation": CATEGORY_VALIDATION,
    "not_found": CATEGORY_VALIDATION,
    "content_policy": CATEGORY_CONTENT_POLICY,
}

_RETRYABLE_CATEGORIES = frozenset(
    {
        CATEGORY_AUTHENTICATION,
        CATEGORY_QUOTA,
        CATEGORY_TRANSIENT,
        CATEGORY_EMPTY_RESULT,
    }
)

_CATEGORY_MESSAGES = {
    CATEGORY_UNCONFIGURED: "No API key is configured for the selected provider.",
    CATEGORY_AUTHENTICATION: (
        "The provider rejected the API key (invalid key or missing permission)."
    ),
    CATEGORY_QUOTA: "The provider reported an exhausted quota or rate limit for the API key.",
    CATEGORY_VALIDATION: (
        "The provider rejected the request (check text, voice, language, and model)."
    ),
    CATEGORY_CONTENT_POLICY: "The provider refused to synthesize this content.",
    CATEGORY_TRANSIENT: "The provider could not be reached or failed with a server error.",
    CATEGORY_EMPTY_RESULT: "The provider returned no audio for part of the text.",
}


def failure_category(failure_kind: str) -> str:
    """Map a provider failure kind to its user-facing category."""

    return _FAILURE_KIND_CATEGORIES.get(failure_kind, CATEGORY_VALIDATION)


def category_message(category: str) -> str:
    """Return the human-readable message for a failure category."""

    return _CATEGORY_MESSAGES.get(category, "Speech generation failed.")


class PipelineStageError(RuntimeError):
    """Raised when a specific command stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class SynthesisFailure(RuntimeError):
    """Raised when one synthesis attempt fails or returns an unusable payload.

    The message is a redacted, length-capped diagnostic meant for logs. User-facing
    text comes from `category_message(failure.category)`.
    """

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str,
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider failure metadata for classification."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code

    @property
    def category(self) -> str:
        """Return the user-facing failure category."""

        return failure_category(self.failure_kind)

    @property
    def retryable(self) -> bool:
        """Return whether switching credentials may fix this failure."""

        return self.category in _RETRYABLE_CATEGORIES


class ProviderNotConfiguredError(RuntimeError):
    """Raised when a provider has no API key to attempt a request with."""

    def __init__(self, provider_id: str) -> None:
        """Initialize with the unconfigured provider identifier."""

        super().__init__(f"No API key configured for provider `{provider_id}`.")
        self.provider_id = provider_id


class ChunkFailedError(RuntimeError):
    """Base class for terminal failures of one chunk in the failover loop."""

    def __init__(self, first_failure: SynthesisFailure, attempts: int) -> None:
        """Initialize with the first classified failure and attempt count."""

        super().__init__(str(first_failure))
        self.first_failure = first_failure
        self.attempts = attempts


class ChunkAbortedError(ChunkFailedError):
    """Raised when a non-retryable failure stops attempts for a chunk."""


class PoolExhaustedError(ChunkFailedError):
    """Raised when every credential in the pool failed with a retryable failure."""


class GenerationError(RuntimeError):
    """Raised when a generation job cannot produce a merged artifact."""

    def __init__(
        self,
        category: str,
        message: str | None = None,
        *,
        chunk_index: int | None = None,
        attempts: int = 0,
    ) -> None:
        """Initialize job failure with a category and human-readable message."""

        resolved_message = message if message is not None else category_message(category)
        super().__init__(resolved_message)
        self.category = category
        self.message = resolved_message
        self.chunk_index = chunk_index
        self.attempts = attempts
