"""Top-level package for Scriptvoice.

This package turns long-form text into one continuous audio file through
third-party TTS providers, rotating across a pool of API keys. The main
orchestration entry point is `GenerationPipeline`.
"""

from .pipeline import GenerationPipeline

__all__ = ["GenerationPipeline", "__version__"]

__version__ = "0.1.0"
