"""
tweetdetect — Heuristic Detector for Machine-Generated Posts

Scores a short social-media post for signs of automated generation
from its text and light account metadata. Rule-based, deterministic,
no network calls beyond the one-time pattern load.

Public API:
  - Detector:         Facade. analyze() / get_stats() / reset_stats()
  - AnalysisResult:   is_ai, confidence, reasons, features
  - FeatureExtractor: Per-post signal extraction
  - FeatureVector:    Immutable extracted features
  - PostMetadata:     Optional account metadata
  - score:            Weighted confidence + reasons from a FeatureVector
  - DuplicateTracker: Bounded near-duplicate history
  - PatternStore:     Lazy, fault-tolerant vocabulary loader

Usage:
    from tweetdetect import Detector
    detector = Detector()
    result = await detector.analyze(text, {"username": "someone"})
"""

__version__ = "2.0.0"

from tweetdetect.detector import (
    AnalysisResult,
    Detection,
    DetectionLog,
    Detector,
    KNOWN_AI_BOTS,
    get_detector,
    is_known_ai_bot,
)
from tweetdetect.features import FeatureExtractor, FeatureVector, PostMetadata
from tweetdetect.patterns.store import PatternConfig, PatternStore, default_config
from tweetdetect.scorer import CATEGORY_WEIGHTS, ScoreResult, score
from tweetdetect.tracker import DuplicateTracker

__all__ = [
    "AnalysisResult",
    "Detection",
    "DetectionLog",
    "Detector",
    "KNOWN_AI_BOTS",
    "get_detector",
    "is_known_ai_bot",
    "FeatureExtractor",
    "FeatureVector",
    "PostMetadata",
    "PatternConfig",
    "PatternStore",
    "default_config",
    "CATEGORY_WEIGHTS",
    "ScoreResult",
    "score",
    "DuplicateTracker",
]
