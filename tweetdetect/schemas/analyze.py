"""
API Schemas — Request and Response Models

Pydantic models for the tweetdetect API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tweetdetect.features import PostMetadata


# ============================================================
# ANALYZE
# ============================================================

class MetadataIn(BaseModel):
    """Account metadata. Accepts camelCase aliases as sent by the browser extension."""
    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")
    timestamp: Optional[datetime] = None
    is_verified: bool = Field(False, alias="isVerified")
    has_affiliate_badge: bool = Field(False, alias="hasAffiliateBadge")
    account_age: Optional[float] = Field(None, ge=0, alias="accountAge",
                                         description="Account age in days.")

    def to_metadata(self) -> PostMetadata:
        return PostMetadata(
            username=self.username or None,
            display_name=self.display_name or None,
            timestamp=self.timestamp,
            is_verified=self.is_verified,
            has_affiliate_badge=self.has_affiliate_badge,
            account_age=self.account_age,
        )


class AnalyzeRequest(BaseModel):
    """POST /analyze request body."""
    text: str = Field(..., max_length=50_000,
                      description="The post text to analyze (up to 50,000 characters).")
    metadata: MetadataIn = Field(default_factory=MetadataIn)

    model_config = {"json_schema_extra": {"examples": [
        {"text": "Let's delve into the rich tapestry of this multifaceted issue.",
         "metadata": {"username": "John12345", "accountAge": 12}},
    ]}}


class AnalyzeBatchRequest(BaseModel):
    """POST /analyze/batch request body."""
    items: list[AnalyzeRequest] = Field(..., min_length=1, max_length=100)


class AnalyzeResponse(BaseModel):
    """POST /analyze response body."""
    is_ai: bool
    confidence: float
    reasons: list[str]
    display: bool
    skipped: bool = False
    is_known_bot: bool = False
    features: Optional[dict] = None
    breakdown: Optional[dict] = None
    engine_version: str


class AnalyzeBatchResponse(BaseModel):
    """POST /analyze/batch response body."""
    results: list[AnalyzeResponse]
    total: int
    flagged: int


# ============================================================
# STATS
# ============================================================

class DetectionOut(BaseModel):
    username: Optional[str] = None
    confidence: float
    reasons: list[str]
    timestamp: str


class StatsResponse(BaseModel):
    tweets_analyzed: int
    ai_detected: int
    confidence_sum: float
    avg_confidence: float
    detection_rate: float
    duplicate_cache: dict
    recent_detections: list[DetectionOut]


# ============================================================
# PATTERNS / HEALTH
# ============================================================

class PatternsResponse(BaseModel):
    source: str
    state: str
    using_defaults: bool
    counts: dict[str, int]
    skipped_patterns: list[str]


class HealthResponse(BaseModel):
    status: str
    version: str
    patterns_state: str
    using_default_patterns: bool
    confidence_threshold: float
