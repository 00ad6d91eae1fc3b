"""
Detector — Analysis Orchestrator

Coordinates one analysis:
  1. Waits for the pattern store if it has not finished loading.
  2. Short-circuits known automated-assistant accounts (confidence 1.0).
  3. Otherwise runs the feature extractor and the scorer.
  4. Flags the post when ANY signal fired (reasons or confidence > 0).
     Whether a flag is surfaced is a separate display-threshold
     decision, see AnalysisResult.should_display().
  5. Updates running statistics and the recent-detection log.

Each Detector owns its tracker, statistics and detection log, so
tests and embedders can create isolated instances. Steps 2–5 run in a
single critical section, making a Detector safe to share across threads.
"""

from __future__ import annotations

import asyncio
import re
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

from tweetdetect.config import settings
from tweetdetect.features import (
    FeatureExtractor,
    FeatureVector,
    MetadataLike,
    PostMetadata,
    coerce_metadata,
)
from tweetdetect.logging import get_logger
from tweetdetect.patterns.store import PatternConfig, PatternStore
from tweetdetect.scorer import score
from tweetdetect.tracker import DuplicateTracker

logger = get_logger("detector")


KNOWN_AI_BOTS: tuple[str, ...] = (
    "grok",
    "chatgpt",
    "claude",
    "gemini",
    "copilot",
    "bard",
    "metaai",
    "perplexity_ai",
    "anthropic",
    "openai",
)
KNOWN_BOT_REASON = "Official AI bot account"

_HANDLE_NOISE = re.compile(r"[@\s]")


def normalize_handle(username: str) -> str:
    return _HANDLE_NOISE.sub("", username).lower()


def is_known_ai_bot(username: Optional[str]) -> bool:
    """True when the handle and a known assistant account name contain one another."""
    if not username:
        return False
    handle = normalize_handle(username)
    return bool(handle) and any(
        bot in handle or handle in bot for bot in KNOWN_AI_BOTS
    )


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of Detector.analyze()."""
    is_ai: bool
    confidence: float
    reasons: tuple[str, ...]
    features: Optional[FeatureVector]  # None for known-bot short-circuits
    is_known_bot: bool = False
    breakdown: dict = field(default_factory=dict, hash=False, compare=False)

    def should_display(self, threshold: Optional[float] = None) -> bool:
        """Whether a downstream UI should surface this detection."""
        if threshold is None:
            threshold = settings.CONFIDENCE_THRESHOLD
        return self.is_ai and self.confidence >= threshold

    def as_dict(self) -> dict[str, Any]:
        return {
            "is_ai": self.is_ai,
            "confidence": round(self.confidence, 4),
            "reasons": list(self.reasons),
            "features": self.features.as_dict() if self.features else {"is_known_ai_bot": True},
            "is_known_bot": self.is_known_bot,
            "breakdown": self.breakdown or None,
        }


@dataclass
class DetectorStats:
    tweets_analyzed: int = 0
    ai_detected: int = 0
    confidence_sum: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["avg_confidence"] = (
            self.confidence_sum / self.ai_detected if self.ai_detected else 0.0
        )
        data["detection_rate"] = (
            self.ai_detected / self.tweets_analyzed if self.tweets_analyzed else 0.0
        )
        return data


@dataclass(frozen=True)
class Detection:
    """One flagged post, as kept in the detection log."""
    username: Optional[str]
    confidence: float
    reasons: tuple[str, ...]
    timestamp: datetime

    def as_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "confidence": round(self.confidence, 4),
            "reasons": list(self.reasons),
            "timestamp": self.timestamp.isoformat(),
        }


class DetectionLog:
    """Newest-first, bounded history of detections."""

    def __init__(self, max_entries: Optional[int] = None):
        size = max_entries if max_entries is not None else settings.DETECTION_LOG_SIZE
        self._entries: deque[Detection] = deque(maxlen=max(size, 0))

    def add(self, detection: Detection) -> None:
        self._entries.appendleft(detection)

    def recent(self, limit: Optional[int] = None) -> list[Detection]:
        entries = list(self._entries)
        return entries if limit is None else entries[:max(limit, 0)]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# ============================================================
# THE DETECTOR
# ============================================================

class Detector:
    """
    Facade over pattern store, duplicate tracker, extractor and scorer.

    Args:
        patterns: A PatternStore, a ready PatternConfig, or None for a
            store reading settings.PATTERNS_SOURCE.
        tracker: Duplicate tracker; a fresh one from settings by default.
        detection_log_size: Capacity of the recent-detection log.
        clock: Returns "now" for detection timestamps.
    """

    def __init__(
        self,
        patterns: Union[PatternStore, PatternConfig, None] = None,
        tracker: Optional[DuplicateTracker] = None,
        detection_log_size: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if isinstance(patterns, PatternConfig):
            patterns = PatternStore.ready(patterns)
        self.patterns = patterns or PatternStore()
        self.tracker = tracker or DuplicateTracker()
        self.detections = DetectionLog(detection_log_size)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._stats = DetectorStats()
        self._lock = threading.Lock()
        self._extractor: Optional[FeatureExtractor] = None

    async def analyze(self, text: Optional[str], metadata: MetadataLike = None) -> AnalysisResult:
        """Analyze one post. Awaits the pattern load on first use."""
        config = self.patterns.config
        if config is None:
            config = await self.patterns.load()
        return self._analyze_with(config, text, metadata)

    def analyze_sync(self, text: Optional[str], metadata: MetadataLike = None) -> AnalysisResult:
        """
        Blocking variant for callers without an event loop.

        Loads patterns with asyncio.run() on first use, so it must not be
        called from inside a running loop before the store is READY.
        """
        config = self.patterns.config
        if config is None:
            config = asyncio.run(self.patterns.load())
        return self._analyze_with(config, text, metadata)

    def _analyze_with(
        self, config: PatternConfig, text: Optional[str], metadata: MetadataLike,
    ) -> AnalysisResult:
        meta = coerce_metadata(metadata)
        start = time.perf_counter()

        with self._lock:
            if is_known_ai_bot(meta.username):
                result = AnalysisResult(
                    is_ai=True,
                    confidence=1.0,
                    reasons=(KNOWN_BOT_REASON,),
                    features=None,
                    is_known_bot=True,
                )
            else:
                features = self._extractor_for(config).extract(text, meta)
                scored = score(features)
                result = AnalysisResult(
                    is_ai=bool(scored.reasons) or scored.confidence > 0,
                    confidence=scored.confidence,
                    reasons=scored.reasons,
                    features=features,
                    breakdown=scored.breakdown,
                )
            self._record(result, meta)

        logger.debug(
            "Post analyzed",
            extra={
                "confidence": round(result.confidence, 4),
                "is_ai": result.is_ai,
                "reasons_count": len(result.reasons),
                "username": meta.username,
                "duration_ms": round((time.perf_counter() - start) * 1000, 3),
            },
        )
        return result

    def _extractor_for(self, config: PatternConfig) -> FeatureExtractor:
        if self._extractor is None or self._extractor.patterns is not config:
            self._extractor = FeatureExtractor(config, self.tracker)
        return self._extractor

    def _record(self, result: AnalysisResult, meta: PostMetadata) -> None:
        self._stats.tweets_analyzed += 1
        if not result.is_ai:
            return
        self._stats.ai_detected += 1
        self._stats.confidence_sum += result.confidence
        self.detections.add(Detection(
            username=meta.username,
            confidence=result.confidence,
            reasons=result.reasons,
            timestamp=self._clock(),
        ))

    # --- Statistics ---

    def get_stats(self) -> dict[str, Any]:
        """Counters plus avg_confidence and detection_rate (0 when undefined)."""
        with self._lock:
            return self._stats.as_dict()

    def reset_stats(self) -> None:
        """Zero the counters. The duplicate tracker and detection log are kept."""
        with self._lock:
            self._stats = DetectorStats()
        logger.info("Detector statistics reset")

    def recent_detections(self, limit: Optional[int] = None) -> list[Detection]:
        with self._lock:
            return self.detections.recent(limit)

    def clear_detections(self) -> None:
        with self._lock:
            self.detections.clear()


_default_detector: Optional[Detector] = None
_default_lock = threading.Lock()


def get_detector() -> Detector:
    """Process-wide Detector built from settings on first use."""
    global _default_detector
    if _default_detector is None:
        with _default_lock:
            if _default_detector is None:
                _default_detector = Detector()
    return _default_detector
