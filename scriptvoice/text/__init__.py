"""Text segmentation components.

This package provides deterministic chunking and neighbor-context building
blocks used before synthesis requests are issued.
"""

from .chunking import Chunker
from .context import ContextBuilder

__all__ = ["Chunker", "ContextBuilder"]
