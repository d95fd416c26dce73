"""Source analyzers that turn baseline files into component descriptors."""

from __future__ import annotations

from .base import SourceAnalyzer
from .component import HOOK_NAMES, TreeSitterSourceAnalyzer, complexity_score
from .patterns import DEFAULT_DETECTORS, Detector, detect_patterns

__all__ = [
    "DEFAULT_DETECTORS",
    "Detector",
    "HOOK_NAMES",
    "SourceAnalyzer",
    "TreeSitterSourceAnalyzer",
    "complexity_score",
    "detect_patterns",
]
