"""Syno-Eager: LLM-backed dictionary and connotation API."""

__version__ = "0.1.0"
