"""
Pattern Store — Detection Vocabulary

Holds the configurable detection vocabulary: indicator words, phrase
regexes, spam keyword lists and generic-reply templates.

The vocabulary lives in an external JSON resource (the bundled
ai-patterns.json unless TWEETDETECT_PATTERNS_SOURCE points elsewhere,
either a file path or an http(s) URL). It is loaded once, lazily, and
is read-only afterwards. Any failure while loading falls back to a
small built-in default set; the caller never sees the error.

Lifecycle:
    UNLOADED → LOADING → READY (loaded config or built-in default)

Regex sources are compiled once when a config is built. Invalid
entries are dropped and listed in PatternConfig.skipped_patterns.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Any, Optional

import httpx

from tweetdetect.config import settings
from tweetdetect.logging import get_logger

logger = get_logger("patterns")


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class CompiledPattern:
    """A regex source paired with its compiled, case-insensitive form."""
    source: str
    regex: re.Pattern

    def search(self, text: str) -> bool:
        return self.regex.search(text) is not None


def _string_list(value: Any) -> tuple[str, ...]:
    """Coerce a JSON value to a tuple of non-empty strings; anything else is empty."""
    if not isinstance(value, (list, tuple, set, frozenset)):
        return ()
    return tuple(v for v in value if isinstance(v, str) and v)


def compile_patterns(
    sources: tuple[str, ...], kind: str,
) -> tuple[tuple[CompiledPattern, ...], tuple[str, ...]]:
    """
    Compile regex sources, skipping the ones that do not compile.

    Returns:
        (compiled, skipped) where skipped holds the rejected sources.
    """
    compiled = []
    skipped = []
    for source in sources:
        try:
            compiled.append(CompiledPattern(source, re.compile(source, re.IGNORECASE)))
        except re.error as e:
            skipped.append(source)
            logger.warning(
                "Skipping invalid %s pattern %r: %s", kind, source, e,
                extra={"error": str(e)},
            )
    return tuple(compiled), tuple(skipped)


@dataclass(frozen=True)
class PatternConfig:
    """
    Immutable detection vocabulary shared by every analysis.

    Built from the JSON shape:
        {
          "aiIndicatorWords": [...],
          "aiPhrasePatterns": [...],
          "punctuationPatterns": {"rule": threshold, ...},
          "spamIndicators": {
            "genericResponses": [...],
            "cryptoKeywords": [...],
            "adultContentKeywords": [...],
            "promotionalPhrases": [...],
            "suspiciousLinkPatterns": [...]
          }
        }
    """
    ai_indicator_words: frozenset[str] = frozenset()
    ai_phrase_patterns: tuple[CompiledPattern, ...] = ()
    punctuation_patterns: dict[str, float] = field(default_factory=dict, hash=False)
    generic_responses: tuple[str, ...] = ()
    crypto_keywords: tuple[str, ...] = ()
    adult_content_keywords: tuple[str, ...] = ()
    promotional_phrases: tuple[str, ...] = ()
    suspicious_link_patterns: tuple[CompiledPattern, ...] = ()
    source: str = "inline"
    skipped_patterns: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: Any, source: str = "inline") -> "PatternConfig":
        """Build a config from a decoded JSON document. Missing or malformed fields become empty."""
        if not isinstance(raw, dict):
            raw = {}
        spam = raw.get("spamIndicators")
        if not isinstance(spam, dict):
            spam = {}

        punctuation = raw.get("punctuationPatterns")
        thresholds: dict[str, float] = {}
        if isinstance(punctuation, dict):
            for name, value in punctuation.items():
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    thresholds[str(name)] = float(value)

        phrases, skipped_phrases = compile_patterns(
            _string_list(raw.get("aiPhrasePatterns")), "phrase",
        )
        links, skipped_links = compile_patterns(
            _string_list(spam.get("suspiciousLinkPatterns")), "suspicious link",
        )

        return cls(
            ai_indicator_words=frozenset(
                w.strip().lower() for w in _string_list(raw.get("aiIndicatorWords"))
                if w.strip()
            ),
            ai_phrase_patterns=phrases,
            punctuation_patterns=thresholds,
            generic_responses=_string_list(spam.get("genericResponses")),
            crypto_keywords=_string_list(spam.get("cryptoKeywords")),
            adult_content_keywords=_string_list(spam.get("adultContentKeywords")),
            promotional_phrases=_string_list(spam.get("promotionalPhrases")),
            suspicious_link_patterns=links,
            source=source,
            skipped_patterns=skipped_phrases + skipped_links,
        )

    @cached_property
    def indicator_regexes(self) -> tuple[re.Pattern, ...]:
        """Word-boundary regexes for the indicator words, compiled on first use."""
        return tuple(
            re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)
            for word in sorted(self.ai_indicator_words)
        )

    def counts(self) -> dict[str, int]:
        """Number of entries per vocabulary list."""
        return {
            "ai_indicator_words": len(self.ai_indicator_words),
            "ai_phrase_patterns": len(self.ai_phrase_patterns),
            "punctuation_patterns": len(self.punctuation_patterns),
            "generic_responses": len(self.generic_responses),
            "crypto_keywords": len(self.crypto_keywords),
            "adult_content_keywords": len(self.adult_content_keywords),
            "promotional_phrases": len(self.promotional_phrases),
            "suspicious_link_patterns": len(self.suspicious_link_patterns),
        }


# ============================================================
# BUILT-IN DEFAULTS
# ============================================================

DEFAULT_PATTERNS: dict[str, Any] = {
    "aiIndicatorWords": ["delve", "tapestry", "intricate", "nuanced", "multifaceted"],
    "aiPhrasePatterns": ["it's not .+ it's .+", "as an AI"],
    "punctuationPatterns": {"excessiveEmDashes": 2},
    "spamIndicators": {"excessiveHashtags": 5},
}


def default_config() -> PatternConfig:
    """The reduced vocabulary used when the external resource cannot be loaded."""
    return PatternConfig.from_dict(DEFAULT_PATTERNS, source="default")


# ============================================================
# THE STORE
# ============================================================

class LoadState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"


class PatternStore:
    """
    Lazily loads the pattern configuration exactly once.

    Concurrent callers of load() share a single fetch: the first one
    performs it under an asyncio lock, the rest wait on the lock and
    then return the same snapshot. Nobody ever reads a half-built
    config.
    """

    def __init__(
        self,
        source: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.source = source or settings.PATTERNS_SOURCE
        self.timeout = timeout if timeout is not None else settings.PATTERNS_TIMEOUT
        self._transport = transport
        self._lock = asyncio.Lock()
        self._state = LoadState.UNLOADED
        self._config: Optional[PatternConfig] = None
        self._is_default = False

    @classmethod
    def ready(cls, config: PatternConfig) -> "PatternStore":
        """A store that is already READY with the given config. No fetch ever happens."""
        store = cls(source=config.source)
        store._config = config
        store._state = LoadState.READY
        return store

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def config(self) -> Optional[PatternConfig]:
        """The loaded snapshot, or None until the store is READY."""
        return self._config

    @property
    def is_default(self) -> bool:
        """True when the built-in fallback is in use."""
        return self._is_default

    async def load(self) -> PatternConfig:
        """
        Return the pattern config, fetching it on first call.

        Never raises: any failure substitutes default_config().
        """
        if self._config is not None:
            return self._config

        async with self._lock:
            if self._config is not None:
                return self._config

            self._state = LoadState.LOADING
            try:
                raw = await self._fetch()
                if not isinstance(raw, dict):
                    raise ValueError(
                        f"pattern document must be a JSON object, got {type(raw).__name__}"
                    )
                config = PatternConfig.from_dict(raw, source=self.source)
                self._is_default = False
            except Exception as e:
                logger.warning(
                    "Failed to load patterns from %s, using built-in defaults", self.source,
                    extra={"error": str(e), "error_type": type(e).__name__},
                )
                config = default_config()
                self._is_default = True

            self._config = config
            self._state = LoadState.READY

        logger.info(
            "Patterns ready",
            extra={
                "source": self._config.source,
                "patterns_state": self._state.value,
                "skipped_patterns": len(self._config.skipped_patterns) or None,
            },
        )
        return self._config

    async def _fetch(self) -> Any:
        if self.source.startswith(("http://", "https://")):
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(self.source)
                response.raise_for_status()
                return response.json()

        path = Path(self.source)
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return json.loads(text)
