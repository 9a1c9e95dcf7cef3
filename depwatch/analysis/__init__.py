"""Analysis package for AI-prioritized dependency summaries."""

from .summarizer import DependencySummarizer
from .prompts import ANALYSIS_SYSTEM_PROMPT

__all__ = ["DependencySummarizer", "ANALYSIS_SYSTEM_PROMPT"]
