"""Single-document PDF study assistant backed by retrieval-augmented generation."""

__version__ = "0.1.0"
