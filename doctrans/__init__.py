"""Budget-aware, markup-safe translation of JSON-like documents with an LLM backend."""

__version__ = "0.1.0"
