"""
LLM-backed helpers.
"""

from .summarizer import Summarizer, SummarizerConfig, ModelProvider

__all__ = ["Summarizer", "SummarizerConfig", "ModelProvider"]
