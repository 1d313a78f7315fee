"""Built-in corpus of curated site recipes."""

from .loader import load_corpus, read_corpus_bytes

__all__ = ["load_corpus", "read_corpus_bytes"]
