"""
Duplicate Tracker

Bounded, insertion-ordered history of recently seen posts, used to
flag templated or copy-pasted bot content. Key = normalized text,
value = the author who first posted it.

A probe is a duplicate when some cached post by a *different* author
is an exact normalized match, has Jaccard word-set similarity above
the threshold, or is structurally similar (shared words for short
posts, shared adjacent bigrams for longer ones). Repeats by the same
author are never flagged.

When the store grows past capacity the oldest entries are evicted in
one batch. Not thread-safe on its own; the Detector serializes access.

Usage:
    tracker = DuplicateTracker()
    if tracker.check_duplicate(text, author):
        ...
    tracker.record(text, author)
"""

from __future__ import annotations

import re
from collections import OrderedDict
from typing import Optional

from tweetdetect.config import settings

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


class DuplicateTracker:
    """Near-duplicate detector over a bounded recent-history window."""

    def __init__(
        self,
        capacity: Optional[int] = None,
        eviction_batch: Optional[int] = None,
        jaccard_threshold: Optional[float] = None,
        bigram_overlap: Optional[float] = None,
        short_text_words: int = 8,
        short_text_min_shared: int = 4,
        max_length_gap: int = 3,
    ):
        self.capacity = capacity if capacity is not None else settings.DUPLICATE_CACHE_SIZE
        self.eviction_batch = (
            eviction_batch if eviction_batch is not None
            else settings.DUPLICATE_EVICTION_BATCH
        )
        self.jaccard_threshold = (
            jaccard_threshold if jaccard_threshold is not None
            else settings.JACCARD_THRESHOLD
        )
        self.bigram_overlap = (
            bigram_overlap if bigram_overlap is not None else settings.BIGRAM_OVERLAP
        )
        self.short_text_words = short_text_words
        self.short_text_min_shared = short_text_min_shared
        self.max_length_gap = max_length_gap
        self._entries: OrderedDict[str, Optional[str]] = OrderedDict()
        self._evictions = 0

    @staticmethod
    def normalize(text: Optional[str]) -> str:
        """Lowercase, collapse whitespace, then drop punctuation."""
        if not text:
            return ""
        collapsed = _WHITESPACE.sub(" ", text.lower())
        return _PUNCTUATION.sub("", collapsed).strip()

    def check_duplicate(self, text: Optional[str], author: Optional[str]) -> bool:
        """True if a different author recently posted the same or a near-identical text."""
        probe = self.normalize(text)
        if not probe:
            return False
        probe_words = probe.split()

        for cached_text, cached_author in self._entries.items():
            if cached_author == author:
                continue
            if cached_text == probe:
                return True
            cached_words = cached_text.split()
            if self.jaccard(probe_words, cached_words) > self.jaccard_threshold:
                return True
            if self._structurally_similar(probe_words, cached_words, cached_text):
                return True
        return False

    def record(self, text: Optional[str], author: Optional[str]) -> None:
        """Remember a post. An already-known text keeps its original author."""
        key = self.normalize(text)
        if not key or key in self._entries:
            return

        self._entries[key] = author
        if len(self._entries) > self.capacity:
            for _ in range(min(self.eviction_batch, len(self._entries))):
                self._entries.popitem(last=False)
                self._evictions += 1

    @staticmethod
    def jaccard(words_a: list[str], words_b: list[str]) -> float:
        """Word-set overlap: |A ∩ B| / |A ∪ B|."""
        if not words_a or not words_b:
            return 0.0
        set_a, set_b = set(words_a), set(words_b)
        return len(set_a & set_b) / len(set_a | set_b)

    def _structurally_similar(
        self, probe_words: list[str], cached_words: list[str], cached_text: str,
    ) -> bool:
        """Same sentence skeleton with a few words swapped."""
        if abs(len(probe_words) - len(cached_words)) > self.max_length_gap:
            return False

        if len(probe_words) <= self.short_text_words and len(cached_words) <= self.short_text_words:
            shared = sum(1 for w in probe_words if w in cached_words)
            return shared >= self.short_text_min_shared

        bigrams = [
            f"{probe_words[i]} {probe_words[i + 1]}"
            for i in range(len(probe_words) - 1)
        ]
        matching = sum(1 for b in bigrams if b in cached_text)
        return matching >= len(bigrams) * self.bigram_overlap

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: object) -> bool:
        return isinstance(text, str) and self.normalize(text) in self._entries

    @property
    def stats(self) -> dict:
        return {
            "entries": len(self._entries),
            "capacity": self.capacity,
            "evicted": self._evictions,
        }
