"""LLM-assisted copyediting of PDF documents."""

__version__ = "0.1.0"
