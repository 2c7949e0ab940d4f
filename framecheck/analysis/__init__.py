"""Timing and format analysis of collected frames"""

from framecheck.analysis.analyzer import Tolerances, analyze, measure, CHECKS

__all__ = ["Tolerances", "analyze", "measure", "CHECKS"]
