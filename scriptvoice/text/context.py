"""Cross-chunk context excerpts for prosody continuity.

Responsibilities:
- Derive bounded look-back/look-ahead excerpts from neighboring chunks.
- Keep excerpts on word boundaries so providers receive readable context.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..models.datatypes import SynthesisContext, TextChunk


class ContextBuilder:
    """Build `SynthesisContext` values from an ordered chunk list."""

    def __init__(self, max_chars: int = 250) -> None:
        """Initialize with a per-excerpt character budget (`0` disables context)."""

        if max_chars < 0:
            raise ValueError("`max_chars` must be zero or a positive integer.")
        self.max_chars = max_chars

    def build(self, chunks: Sequence[TextChunk], index: int) -> SynthesisContext:
        """Return neighbor excerpts for the chunk at `index`."""

        if index < 0 or index >= len(chunks):
            raise IndexError(f"Chunk index {index} is out of range for {len(chunks)} chunks.")
        if self.max_chars == 0:
            return SynthesisContext()

        previous_excerpt = ""
        if index > 0:
            previous_excerpt = self._trailing_excerpt(chunks[index - 1].content)
        next_excerpt = ""
        if index + 1 < len(chunks):
            next_excerpt = self._leading_excerpt(chunks[index + 1].content)
        return SynthesisContext(previous_excerpt=previous_excerpt, next_excerpt=next_excerpt)

    def _trailing_excerpt(self, text: str) -> str:
        """Return the tail of `text`, dropping a leading partial word."""

        stripped = text.strip()
        if len(stripped) <= self.max_chars:
            return stripped
        excerpt = stripped[-self.max_chars :]
        cut_mid_word = not (stripped[-self.max_chars - 1].isspace() or excerpt[0].isspace())
        if cut_mid_word:
            parts = excerpt.split(None, 1)
            if len(parts) == 2:
                excerpt = parts[1]
        return excerpt.strip()

    def _leading_excerpt(self, text: str) -> str:
        """Return the head of `text`, dropping a trailing partial word."""

        stripped = text.strip()
        if len(stripped) <= self.max_chars:
            return stripped
        excerpt = stripped[: self.max_chars]
        cut_mid_word = not (stripped[self.max_chars].isspace() or excerpt[-1].isspace())
        if cut_mid_word:
            parts = excerpt.rsplit(None, 1)
            if len(parts) == 2:
                excerpt = parts[0]
        return excerpt.strip()
