"""quorum - weighted-consensus coordination for LLM-backed participants."""

__version__ = "0.1.0"
