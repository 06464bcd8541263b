"""Long-text segmentation into provider-safe chunks.

Responsibilities:
- Split arbitrary text into ordered chunks bounded by a maximum length.
- Prefer section, paragraph, and sentence boundaries over word or hard cuts.
- Stay pure and deterministic so repeated runs produce identical chunk plans.
"""

from __future__ import annotations

import re

from ..models.datatypes import TextChunk


class _ChunkAccumulator:
    """Collect units into chunks while the running text still fits the limit."""

    def __init__(self, max_length: int) -> None:
        """Initialize an empty accumulator for one split call."""

        self.max_length = max_length
        self.chunks: list[TextChunk] = []
        self._buffer = ""

    def append(self, unit: str, separator: str) -> None:
        """Append one unit that is itself within the limit."""

        if not self._buffer:
            self._buffer = unit
            return
        if len(self._buffer) + len(separator) + len(unit) <= self.max_length:
            self._buffer = f"{self._buffer}{separator}{unit}"
            return
        self.flush()
        self._buffer = unit

    def flush(self) -> None:
        """Emit the buffered text as a chunk when non-empty."""

        if self._buffer:
            self.chunks.append(TextChunk(index=len(self.chunks), content=self._buffer))
            self._buffer = ""


class Chunker:
    """Split text on a section > paragraph > sentence > word boundary cascade."""

    _PARAGRAPH_SEPARATOR = "\n\n"
    _SENTENCE_SEPARATOR = " "
    _HARD_CUT_WINDOW_RATIO = 0.20
    _SENTENCE_TERMINATORS = ".!?"
    _TRAILING_SENTENCE_CLOSERS = "\"')]}»”’"
    _COMMON_ABBREVIATIONS = frozenset(
        {
            "mr.",
            "mrs.",
            "ms.",
            "dr.",
            "prof.",
            "sr.",
            "jr.",
            "st.",
            "etc.",
            "e.g.",
            "i.e.",
            "vs.",
            "no.",
            "fig.",
            "al.",
            "tp.",
            "ths.",
            "ts.",
        }
    )
    _ACRONYM_PATTERN = re.compile(r"(?:[A-Za-z]\.){2,}$")
    _PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t]*\n\s*")
    _SECTION_MARKER_RE = re.compile(
        r"^\s*(?:chapter|part|section|book|chương|phần|hồi|quyển|kapitola|část|díl)\s+"
        r"(?:thứ\s+)?"
        r"(?:\d+"
        r"|(?=[ivxlcdm])m{0,3}(?:cm|cd|d?c{0,3})(?:xc|xl|l?x{0,3})(?:ix|iv|v?i{0,3})"
        r"|one|two|three|first|second|third"
        r"|một|hai|ba|nhất|nhì)"
        r"(?=[ \t]*(?:$|\n|[:.\-–—]))",
        re.IGNORECASE,
    )

    def split(self, text: str, max_length: int) -> list[TextChunk]:
        """Split text into ordered chunks.

        Args:
            text: Input text of any length.
            max_length: Maximum chunk length in characters.

        Returns:
            Ordered non-empty chunks, each at most `max_length` characters.

        Raises:
            ValueError: If `max_length` is not positive.
        """

        if max_length < 1:
            raise ValueError("`max_length` must be a positive integer.")

        normalized = text.replace("\r\n", "\n").replace("\r", "\n").strip()
        if not normalized:
            return []
        if len(normalized) <= max_length:
            return [TextChunk(index=0, content=normalized)]

        accumulator = _ChunkAccumulator(max_length)
        for paragraph in self._paragraphs(normalized):
            if self.is_section_start(paragraph):
                accumulator.flush()
            if len(paragraph) <= max_length:
                accumulator.append(paragraph, self._PARAGRAPH_SEPARATOR)
                continue

            separator = self._PARAGRAPH_SEPARATOR
            for sentence in self._sentences(paragraph):
                if len(sentence) <= max_length:
                    accumulator.append(sentence, separator)
                else:
                    for piece in self._hard_cut(sentence, max_length):
                        accumulator.append(piece, separator)
                        separator = self._SENTENCE_SEPARATOR
                separator = self._SENTENCE_SEPARATOR
        accumulator.flush()
        return accumulator.chunks

    def is_section_start(self, paragraph: str) -> bool:
        """Return whether a paragraph opens with a section/chapter marker."""

        return bool(self._SECTION_MARKER_RE.match(paragraph))

    def _paragraphs(self, text: str) -> list[str]:
        """Split normalized text on blank lines and drop empty paragraphs."""

        paragraphs: list[str] = []
        for raw in self._PARAGRAPH_BREAK_RE.split(text):
            paragraph = raw.strip()
            if paragraph:
                paragraphs.append(paragraph)
        return paragraphs

    def _sentences(self, paragraph: str) -> list[str]:
        """Split a paragraph into sentences ending in `.`, `!`, or `?`."""

        sentences: list[str] = []
        length = len(paragraph)
        start = 0
        index = 0
        while index < length:
            if paragraph[index] in self._SENTENCE_TERMINATORS and self._is_sentence_boundary(
                paragraph, index
            ):
                end = index + 1
                while end < length and paragraph[end] in self._SENTENCE_TERMINATORS:
                    end += 1
                while end < length and paragraph[end] in self._TRAILING_SENTENCE_CLOSERS:
                    end += 1
                if end >= length or paragraph[end].isspace():
                    sentence = paragraph[start:end].strip()
                    if sentence:
                        sentences.append(sentence)
                    start = end
                index = end
                continue
            index += 1

        tail = paragraph[start:].strip()
        if tail:
            sentences.append(tail)
        return sentences

    def _hard_cut(self, sentence: str, max_length: int) -> list[str]:
        """Cut an oversized sentence at word boundaries, or exactly at the limit."""

        pieces: list[str] = []
        min_cut = max_length - max_length * self._HARD_CUT_WINDOW_RATIO
        remaining = sentence
        while len(remaining) > max_length:
            cut = self._last_whitespace(remaining, max_length)
            if cut is None or cut < min_cut:
                cut = max_length
            pieces.append(remaining[:cut].rstrip())
            remaining = remaining[cut:].lstrip()
        if remaining:
            pieces.append(remaining)
        return pieces

    @staticmethod
    def _last_whitespace(text: str, limit: int) -> int | None:
        """Return the last whitespace index in `text[1:limit + 1]`, if any."""

        for index in range(min(limit, len(text) - 1), 0, -1):
            if text[index].isspace():
                return index
        return None

    def _is_sentence_boundary(self, text: str, punctuation_index: int) -> bool:
        """Return whether punctuation at index terminates a sentence."""

        if text[punctuation_index] != ".":
            return True
        if self._is_decimal_period(text, punctuation_index):
            return False
        if self._is_abbreviation_period(text, punctuation_index):
            return False
        return True

    def _is_decimal_period(self, text: str, punctuation_index: int) -> bool:
        """Return whether a period is part of a decimal number."""

        if punctuation_index <= 0 or punctuation_index + 1 >= len(text):
            return False
        return text[punctuation_index - 1].isdigit() and text[punctuation_index + 1].isdigit()

    def _is_abbreviation_period(self, text: str, punctuation_index: int) -> bool:
        """Return whether a period belongs to a likely abbreviation token."""

        start = punctuation_index
        while start > 0 and (text[start - 1].isalpha() or text[start - 1] == "."):
            start -= 1
        token = text[start : punctuation_index + 1].lower()
        if token in self._COMMON_ABBREVIATIONS:
            return True

        acronym_start = max(0, punctuation_index - 8)
        acronym_window = text[acronym_start : punctuation_index + 1]
        return bool(self._ACRONYM_PATTERN.search(acronym_window))
