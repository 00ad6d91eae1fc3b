"""Shared fixtures."""

import json
from pathlib import Path

import pytest

from tweetdetect.detector import Detector
from tweetdetect.features import FeatureExtractor
from tweetdetect.patterns.store import PatternConfig
from tweetdetect.tracker import DuplicateTracker

BUNDLED_PATTERNS = (
    Path(__file__).resolve().parent.parent / "tweetdetect" / "patterns" / "ai-patterns.json"
)


@pytest.fixture(scope="session")
def bundled_config():
    raw = json.loads(BUNDLED_PATTERNS.read_text(encoding="utf-8"))
    return PatternConfig.from_dict(raw, source=str(BUNDLED_PATTERNS))


@pytest.fixture
def extractor(bundled_config):
    return FeatureExtractor(bundled_config, DuplicateTracker())


@pytest.fixture
def detector(bundled_config):
    return Detector(patterns=bundled_config)
