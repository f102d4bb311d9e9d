"""Commit message generation from staged changes via CLI LLM agents."""

__version__ = "0.1.0"
