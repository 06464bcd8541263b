"""Generation job orchestration for Scriptvoice.

Responsibilities:
- Validate a job, chunk its text, and synthesize chunks strictly in order.
- Route every provider request through the multi-key failover controller.
- Surface each segment as soon as it is ready and merge the final artifact.

Key types:
- `GenerationPipeline`: orchestration facade for one or more jobs.
"""

from __future__ import annotations

from collections.abc import Callable
from time import sleep

from .audio.assembler import AudioAssembler, SegmentListener
from .config import ScriptvoiceConfig
from .errors import (
    CATEGORY_UNCONFIGURED,
    CATEGORY_VALIDATION,
    ChunkFailedError,
    GenerationError,
    ProviderNotConfiguredError,
)
from .keys.cursor_store import CursorStore, InMemoryCursorStore
from .keys.pool import CredentialPool
from .models.datatypes import (
    AudioSegment,
    GenerationJob,
    GenerationResult,
    SynthesisRequest,
    TextChunk,
)
from .provider_factory import ProviderFactory
from .telemetry.logger import RunLogger
from .text.chunking import Chunker
from .text.context import ContextBuilder
from .tts.failover import FailoverController
from .tts.rate_limiter import RateLimiter
from .tts.synthesizer import SpeechSynthesizer, build_style_directives
from .tts.voices import is_known_voice

ChunkStartListener = Callable[[TextChunk, int], None]


class GenerationPipeline:
    """Run generation jobs: chunk, synthesize with failover, and assemble audio.

    Jobs on one pipeline share one credential pool per provider. A job holds the
    pool's lock for its whole duration, so concurrent `run` calls for the same
    provider execute one after another.
    """

    def __init__(
        self,
        config: ScriptvoiceConfig | None = None,
        *,
        run_logger: RunLogger | None = None,
        synthesizer: SpeechSynthesizer | None = None,
        credential_pool: CredentialPool | None = None,
        cursor_store: CursorStore | None = None,
        on_chunk_start: ChunkStartListener | None = None,
        sleeper: Callable[[float], None] = sleep,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Runtime configuration, defaults when omitted.
            run_logger: Optional structured logger.
            synthesizer: Provider client override, built from config when omitted.
            credential_pool: Pool override, built from resolved keys when omitted.
            cursor_store: Cursor persistence for built pools, in memory when omitted.
            on_chunk_start: Listener called with `(chunk, total)` before each chunk.
            sleeper: Sleep function used for transient-failure backoff.
        """

        self.config = config if config is not None else ScriptvoiceConfig()
        self.config.validate()
        self._run_logger = run_logger
        self._synthesizer = synthesizer
        self._credential_pool = credential_pool
        self._cursor_store = cursor_store if cursor_store is not None else InMemoryCursorStore()
        self._on_chunk_start = on_chunk_start
        self._pools: dict[str, CredentialPool] = {}
        self._chunker = Chunker()
        self._context_builder = ContextBuilder(self.config.context_chars)
        self._rate_limiter = RateLimiter(
            min_interval_seconds=self.config.min_request_interval_seconds
        )
        self._controller = FailoverController(
            run_logger,
            transient_backoff_seconds=self.config.transient_backoff_seconds,
            sleeper=sleeper,
        )

    def run(
        self,
        job: GenerationJob,
        on_segment_ready: SegmentListener | None = None,
    ) -> GenerationResult:
        """Run one job to completion and return the merged result.

        `on_segment_ready` is called synchronously, in chunk order, once per segment
        before the next chunk is requested.

        Raises:
            GenerationError: On validation, configuration, or provider failure. No
                merged artifact is produced in that case.
        """

        self._validate_job(job)
        synthesizer = self._synthesizer_for(job)
        pool = self.credential_pool_for(job.provider)
        if not pool.is_configured:
            self._log_failure("config", CATEGORY_UNCONFIGURED, provider=job.provider)
            raise GenerationError(CATEGORY_UNCONFIGURED)

        chunks = self.plan_chunks(job)
        if not chunks:
            raise GenerationError(CATEGORY_VALIDATION, "Input text is empty.")
        model_id = job.model_id or synthesizer.model_id
        directives = build_style_directives(job.tone, job.style, job.instructions)
        assembler = AudioAssembler(synthesizer.output_format, on_segment_ready)

        self._log_stage("start", "synthesize", provider=job.provider, chunks=len(chunks))
        with pool.job_scope():
            for chunk in chunks:
                if self._on_chunk_start is not None:
                    self._on_chunk_start(chunk, len(chunks))
                request = SynthesisRequest(
                    text=chunk.content,
                    language=job.language,
                    voice_id=job.voice_id,
                    style_directives=directives,
                    context=self._context_builder.build(chunks, chunk.index),
                    model_id=model_id,
                )
                assembler.add(self._synthesize_chunk(synthesizer, pool, chunk, request))
        self._log_stage("complete", "synthesize", provider=job.provider, chunks=len(chunks))

        merged = assembler.merge()
        self._log_stage(
            "complete",
            "merge",
            segments=merged.segment_count,
            bytes=len(merged.data),
            container=merged.audio_format.container,
        )
        return GenerationResult(
            merged_audio=merged,
            segments=assembler.segments,
            chunk_count=len(chunks),
            provider=job.provider,
            model_id=model_id,
            voice_id=job.voice_id,
        )

    def plan_chunks(self, job: GenerationJob) -> list[TextChunk]:
        """Return the chunk plan for a job without issuing any request."""

        max_length = job.max_chunk_chars or self.config.resolved_chunk_size(job.provider)
        chunks = self._chunker.split(job.text, max_length)
        self._log_stage(
            "complete",
            "chunk",
            chunks=len(chunks),
            max_chars=max_length,
            text_chars=len(job.text),
        )
        return chunks

    def credential_pool_for(self, provider: str) -> CredentialPool:
        """Return the pool used for `provider`, building it once per pipeline.

        Raises:
            GenerationError: If an injected pool belongs to another provider.
        """

        if self._credential_pool is not None:
            if self._credential_pool.provider_id != provider:
                raise GenerationError(
                    CATEGORY_VALIDATION,
                    f"The supplied credential pool serves `{self._credential_pool.provider_id}`, "
                    f"not `{provider}`.",
                )
            return self._credential_pool
        if provider not in self._pools:
            self._pools[provider] = CredentialPool(
                provider,
                self.config.resolved_api_keys(provider),
                cursor_store=self._cursor_store,
                fallback_key=self.config.resolved_fallback_api_key(provider),
            )
            self._log(
                "INFO",
                "credentials",
                "pool_ready",
                provider=provider,
                keys=self._pools[provider].size,
            )
        return self._pools[provider]

    def _synthesize_chunk(
        self,
        synthesizer: SpeechSynthesizer,
        pool: CredentialPool,
        chunk: TextChunk,
        request: SynthesisRequest,
    ) -> AudioSegment:
        """Synthesize one chunk through the failover loop and wrap it as a segment."""

        label = f"chunk-{chunk.index}"
        try:
            outcome = self._controller.execute(
                pool,
                lambda api_key: synthesizer.synthesize(request, api_key),
                label=label,
            )
        except ChunkFailedError as exc:
            category = exc.first_failure.category
            self._log_failure(
                "synthesize",
                category,
                chunk=chunk.index,
                attempts=exc.attempts,
                outcome=type(exc).__name__,
            )
            raise GenerationError(
                category,
                chunk_index=chunk.index,
                attempts=exc.attempts,
            ) from exc.first_failure
        except ProviderNotConfiguredError as exc:
            self._log_failure("synthesize", CATEGORY_UNCONFIGURED, chunk=chunk.index)
            raise GenerationError(CATEGORY_UNCONFIGURED, chunk_index=chunk.index) from exc

        self._log(
            "INFO",
            "synthesize",
            "segment_ready",
            target=label,
            attempts=outcome.attempts,
            key_index=outcome.credential_index,
            bytes=len(outcome.value),
        )
        return AudioSegment(
            id=chunk.index,
            source_text=chunk.content,
            audio_payload=outcome.value,
            credential_index=outcome.credential_index,
            attempts=outcome.attempts,
        )

    def _synthesizer_for(self, job: GenerationJob) -> SpeechSynthesizer:
        """Return the injected synthesizer or build one for the job's provider."""

        if self._synthesizer is not None:
            return self._synthesizer
        return ProviderFactory.create_synthesizer(
            job.provider,
            job.model_id or self.config.resolved_model(job.provider),
            timeout_seconds=self.config.request_timeout_seconds,
            rate_limiter=self._rate_limiter,
        )

    def _validate_job(self, job: GenerationJob) -> None:
        """Reject jobs that cannot produce a valid request."""

        if not job.text.strip():
            raise GenerationError(CATEGORY_VALIDATION, "Input text is empty.")
        try:
            self.config.validate_provider_id(job.provider)
        except ValueError as exc:
            raise GenerationError(CATEGORY_VALIDATION, str(exc)) from exc
        if not job.language.strip():
            raise GenerationError(CATEGORY_VALIDATION, "A target language is required.")
        if not is_known_voice(job.provider, job.voice_id):
            raise GenerationError(
                CATEGORY_VALIDATION,
                f"Voice `{job.voice_id}` is not available for provider `{job.provider}`.",
            )
        if job.max_chunk_chars is not None and job.max_chunk_chars <= 0:
            raise GenerationError(
                CATEGORY_VALIDATION, "`max_chunk_chars` must be a positive integer."
            )

    def _log(self, level: str, stage: str, event: str, **context: object) -> None:
        """Emit a run event when a logger is attached."""

        if self._run_logger is not None:
            self._run_logger.log_event(level, stage, event, **context)

    def _log_failure(self, stage: str, category: str, **context: object) -> None:
        """Emit a stage failure when a logger is attached."""

        if self._run_logger is not None:
            self._run_logger.log_stage_failure(stage, category, **context)

    def _log_stage(self, event: str, stage: str, **context: object) -> None:
        """Emit a stage start or completion when a logger is attached."""

        if self._run_logger is None:
            return
        if event == "start":
            self._run_logger.log_stage_start(stage, **context)
        else:
            self._run_logger.log_stage_complete(stage, **context)
