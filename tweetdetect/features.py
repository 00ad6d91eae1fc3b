"""
Feature Extractor — Per-Post Signals

Turns one post (text + light account metadata) into an immutable
FeatureVector: vocabulary and phrase matches against the pattern
store, punctuation and layout metrics, stylometry, spam and promo
heuristics, metadata flags, and the near-duplicate flag.

Every predicate tolerates empty text, pure emoji and whitespace.
Ratios use a denominator floored at 1. The only side effect of
extraction is one DuplicateTracker.record() call.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from tweetdetect.patterns.store import PatternConfig
from tweetdetect.tracker import DuplicateTracker


# ============================================================
# LEXICONS AND REGEXES
# ============================================================

_EMOJI_RANGES = (
    "\U0001F300-\U0001F9FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "\U0001F000-\U0001F02F"
    "\U0001F0A0-\U0001F0FF"
    "\U0001F100-\U0001F64F"
    "\U0001F680-\U0001F6FF"
)
# Narrower set used for display names, emoji-only posts and formal+emoji mixing
_PICTOGRAPH_RANGES = "\U0001F300-\U0001F9FF\u2600-\u26FF\u2700-\u27BF"

EMOJI_RE = re.compile(f"[{_EMOJI_RANGES}]")
PICTOGRAPH_RE = re.compile(f"[{_PICTOGRAPH_RANGES}]")
_EMOJI_ONLY_LINE_RE = re.compile(f"[{_EMOJI_RANGES}]+")
_TRAILING_EMOJI_RE = re.compile(f"[{_EMOJI_RANGES}]{{2,}}\\s*\\Z")
_REPEATED_EMOJI_RE = re.compile(f"([{_EMOJI_RANGES}])\\1")
# Variation selector and zero-width joiner glue emoji sequences together
_EMOJI_GLUE_RE = re.compile("[\ufe0f\u200d]")

EM_DASH = "\u2014"
_QUOTES_RE = re.compile("[\"\u201c\u201d]")
_BULLETS_RE = re.compile("[\u2022\u00b7\u25aa\u25ab]")
_NUMBERED_LIST_RE = re.compile(r"^\d+[.)]\s", re.MULTILINE)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\n+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_LINE_SPLIT_RE = re.compile(r"\n+")
_CITATION_RE = re.compile(
    r"\b(?:Act of \d{4}|Article \d+|Section \d+|\d{4}\s+[A-Z][a-z]+\s+[A-Z][a-z]+)\b"
)
_HASHTAG_RE = re.compile(r"#\w+")
_MENTION_RE = re.compile(r"@\w+")
_ALL_CAPS_RE = re.compile(r"\b[A-Z]{3,}\b")
_URL_RE = re.compile(r"https?://\S+")

LEGAL_TERMS = (
    "jurisdiction", "federal law", "diplomatic immunity", "statute",
    "enforcement", "pursuant to", "hereby", "thereof", "whereby",
    "act of", "article", "section", "clause", "protocol",
    "authorities", "warrants", "illegal order", "federal authorities",
)

SOURCE_MARKERS = (
    "bbc", "cnn", "reuters", "al jazeera", "the guardian", "new york times",
    "washington post", "associated press", "bloomberg", "forbes",
    "wall street journal", "propphy", "socialrails", "times", "un data",
    "per ", "as per", "according to", "sources like",
)

BALANCE_PHRASES = (
    "in contrast", "however", "on the other hand", "while",
    "perspectives vary", "views vary", "both", "either",
    "some say", "others argue", "but also", "yet",
)

CONVERSATIONAL_HOOKS = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"what['’]s your (?:main use case|take|view|thought|opinion)\?",
    r"your take\?",
    r"what do you think\?",
    r"thoughts\?",
    r"what part['’]s the",
    r"share .+ when you can",
    r"what evidence sways you",
))

FORMAL_CONNECTIVES = (
    "therefore", "furthermore", "moreover", "consequently", "thus", "hence",
)
CONTRACTIONS = ("don't", "can't", "won't", "shouldn't", "wouldn't")
SLANG = tuple(
    re.compile(rf"\b{word}\b")
    for word in ("lol", "lmao", "bruh", "ngl", "fr", "tbh")
)

SUSPICIOUS_USERNAMES = tuple(re.compile(p) for p in (
    r"[A-Z][a-z]+\d{4,}",           # John12345
    r"[A-Z][a-z]+_[A-Z][a-z]+\d+",  # John_Smith123
    r"\w+\d{8,}",                   # long number suffix
    r"\w+\d{1,2}",                  # short number suffix, e.g. hib77
    r"[a-z]+\d{1,3}",               # lowercase with a few digits
))

SHALLOW_TEMPLATES = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"(?:wow|amazing|nice|cool|great|good|beautiful|awesome|incredible|perfect|lovely|stunning)[\s!.]*",
    r"(?:love|need|want|like)\s+(?:this|it|that|the\s+\w+)[\s!.]*",
    r"oh\s+my\s+(?:god|gosh)[\s!.]*",
    r"(?:so\s+)?(?:true|real|facts)[\s!.]*",
    r"(?:yes|yeah|yep|nope|no|exactly)[\s!.]*",
    r"the\s+best[\s!.]*",
    r"bravo[\s!.]*",
    r"(?:cool|good|nice)\s+(?:for|tactic|idea|dude|point)[\s!.]*",
    r"(?:real|playa)\s+\w+[\s!.]*",
))

NEW_ACCOUNT_DAYS = 90


# ============================================================
# DATA STRUCTURES
# ============================================================

_METADATA_ALIASES = {
    "displayName": "display_name",
    "isVerified": "is_verified",
    "hasAffiliateBadge": "has_affiliate_badge",
    "accountAge": "account_age",
}


@dataclass(frozen=True)
class PostMetadata:
    """Light account metadata supplied alongside a post. Every field is optional."""
    username: Optional[str] = None
    display_name: Optional[str] = None
    timestamp: Optional[datetime] = None
    is_verified: bool = False
    has_affiliate_badge: bool = False
    account_age: Optional[float] = None  # days

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "PostMetadata":
        """Accepts camelCase or snake_case keys; unknown keys and bad values are ignored."""
        if not raw:
            return cls()
        values = {_METADATA_ALIASES.get(k, k): v for k, v in raw.items()}

        def _text(key: str) -> Optional[str]:
            value = values.get(key)
            return value if isinstance(value, str) and value else None

        age = values.get("account_age")
        if isinstance(age, bool) or not isinstance(age, (int, float)):
            age = None

        return cls(
            username=_text("username"),
            display_name=_text("display_name"),
            timestamp=_parse_timestamp(values.get("timestamp")),
            is_verified=bool(values.get("is_verified", False)),
            has_affiliate_badge=bool(values.get("has_affiliate_badge", False)),
            account_age=age,
        )


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


MetadataLike = Union[PostMetadata, Mapping[str, Any], None]


def coerce_metadata(metadata: MetadataLike) -> PostMetadata:
    if isinstance(metadata, PostMetadata):
        return metadata
    return PostMetadata.from_dict(metadata)


@dataclass(frozen=True)
class FeatureVector:
    """Everything the scorer needs to know about one post."""
    # Lexical
    ai_word_count: int = 0
    total_words: int = 0
    ai_phrase_matches: tuple[str, ...] = ()
    # Punctuation
    em_dash_count: int = 0
    colon_count: int = 0
    semicolon_count: int = 0
    quotation_count: int = 0
    # Structure
    has_bullet_points: bool = False
    has_numbered_list: bool = False
    paragraph_count: int = 0
    is_long_thread: bool = False
    has_citations: bool = False
    has_legal_jargon: bool = False
    has_mixed_formal_emoji: bool = False
    has_multiple_sources: bool = False
    has_balanced_commentary: bool = False
    has_conversational_hook: bool = False
    # Spam
    hashtag_count: int = 0
    mention_count: int = 0
    all_caps_words: int = 0
    emoji_count: int = 0
    has_excessive_emojis: bool = False
    has_generic_response: bool = False
    # Bot / promo
    has_crypto_spam: bool = False
    has_adult_content_promo: bool = False
    has_promotional_content: bool = False
    link_count: int = 0
    has_suspicious_links: bool = False
    # Stylometric
    avg_sentence_length: float = 0.0
    vocabulary_diversity: float = 0.0
    formality_score: float = 0.0
    # Metadata
    is_new_account: bool = False
    has_suspicious_name: bool = False
    has_affiliate_badge: bool = False
    has_emoji_username: bool = False
    # Low effort
    is_very_short_tweet: bool = False
    is_shallow_comment: bool = False
    # History
    is_duplicate_content: bool = False

    @property
    def ai_word_ratio(self) -> float:
        return self.ai_word_count / max(self.total_words, 1)

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["ai_phrase_matches"] = list(self.ai_phrase_matches)
        return data


# ============================================================
# PATTERN-INDEPENDENT PREDICATES
# ============================================================

def count_words(text: str) -> int:
    return len(text.split())


def count_emojis(text: str) -> int:
    return len(EMOJI_RE.findall(text))


def has_excessive_emojis(text: str) -> bool:
    """Emoji spam: any one of five layouts is enough."""
    emoji_count = count_emojis(text)
    if emoji_count > 3 and count_words(text) < 20:
        return True
    if emoji_count >= 3 and emoji_count / max(len(text), 1) > 0.1:
        return True
    if _TRAILING_EMOJI_RE.search(text):
        return True
    for line in _LINE_SPLIT_RE.split(text):
        stripped = line.strip()
        if stripped and _EMOJI_ONLY_LINE_RE.fullmatch(stripped):
            return True
    return _REPEATED_EMOJI_RE.search(text) is not None


def formality_score(text: str) -> float:
    """
    Register estimate in [0, 1].

    Starts at 0.5: +0.15 per formal connective present, -0.1 per
    contraction, -0.15 per slang token. Blank text scores 0.
    """
    if not text.strip():
        return 0.0
    lower = text.lower().replace("\u2019", "'")
    score = 0.5
    score += 0.15 * sum(1 for word in FORMAL_CONNECTIVES if word in lower)
    score -= 0.1 * sum(1 for word in CONTRACTIONS if word in lower)
    score -= 0.15 * sum(1 for slang in SLANG if slang.search(lower))
    return max(0.0, min(1.0, score))


def avg_sentence_length(text: str) -> float:
    sentences = [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]
    if not sentences:
        return 0.0
    return sum(count_words(s) for s in sentences) / len(sentences)


def vocabulary_diversity(text: str) -> float:
    words = text.lower().split()
    if not words:
        return 0.0
    return len(set(words)) / len(words)


def _count_present(text_lower: str, phrases: tuple[str, ...]) -> int:
    return sum(1 for phrase in phrases if phrase in text_lower)


def has_legal_jargon(text: str) -> bool:
    return _count_present(text.lower(), LEGAL_TERMS) >= 3


def has_multiple_sources(text: str) -> bool:
    return _count_present(text.lower(), SOURCE_MARKERS) >= 2


def has_balanced_commentary(text: str) -> bool:
    return (
        _count_present(text.lower(), BALANCE_PHRASES) >= 2
        and count_words(text) > 30
    )


def has_conversational_hook(text: str) -> bool:
    return any(hook.search(text) for hook in CONVERSATIONAL_HOOKS)


def has_mixed_formal_emoji(text: str) -> bool:
    """Long, formal prose that still carries emoji."""
    if count_words(text) < 50:
        return False
    if not PICTOGRAPH_RE.search(text):
        return False
    return formality_score(text) > 0.6


def is_suspicious_username(username: str) -> bool:
    handle = username.strip().lstrip("@")
    return any(p.fullmatch(handle) for p in SUSPICIOUS_USERNAMES)


def has_emoji_in_name(display_name: str) -> bool:
    return PICTOGRAPH_RE.search(display_name) is not None


def is_shallow_comment(text: str) -> bool:
    """Emoji-only posts, one-word replies, and stock exclamations."""
    if not text.strip():
        return False
    without_emoji = _EMOJI_GLUE_RE.sub("", PICTOGRAPH_RE.sub("", text)).strip()
    if not without_emoji:
        return True

    normalized = text.lower().strip()
    words = count_words(text)
    if words == 1 and len(normalized) < 15:
        return True
    if words <= 4 and len(text) < 30:
        return any(p.fullmatch(normalized) for p in SHALLOW_TEMPLATES)
    return False


# ============================================================
# THE EXTRACTOR
# ============================================================

class FeatureExtractor:
    """
    Builds FeatureVectors against one pattern config and one tracker.

    extract() consults the tracker first and then records the post,
    so a post never matches itself.
    """

    def __init__(self, patterns: PatternConfig, tracker: DuplicateTracker):
        self.patterns = patterns
        self.tracker = tracker

    def extract(self, text: Optional[str], metadata: MetadataLike = None) -> FeatureVector:
        text = text or ""
        meta = coerce_metadata(metadata)
        total_words = count_words(text)
        paragraphs = [p for p in _PARAGRAPH_SPLIT_RE.split(text) if p.strip()]

        is_duplicate = self.tracker.check_duplicate(text, meta.username)
        self.tracker.record(text, meta.username)

        return FeatureVector(
            ai_word_count=self.count_ai_words(text),
            total_words=total_words,
            ai_phrase_matches=self.match_ai_phrases(text),
            em_dash_count=text.count(EM_DASH),
            colon_count=text.count(":"),
            semicolon_count=text.count(";"),
            quotation_count=len(_QUOTES_RE.findall(text)),
            has_bullet_points=_BULLETS_RE.search(text) is not None,
            has_numbered_list=_NUMBERED_LIST_RE.search(text) is not None,
            paragraph_count=len(paragraphs),
            is_long_thread=total_words > 100 and len(paragraphs) > 2,
            has_citations=_CITATION_RE.search(text) is not None,
            has_legal_jargon=has_legal_jargon(text),
            has_mixed_formal_emoji=has_mixed_formal_emoji(text),
            has_multiple_sources=has_multiple_sources(text),
            has_balanced_commentary=has_balanced_commentary(text),
            has_conversational_hook=has_conversational_hook(text),
            hashtag_count=len(_HASHTAG_RE.findall(text)),
            mention_count=len(_MENTION_RE.findall(text)),
            all_caps_words=len(_ALL_CAPS_RE.findall(text)),
            emoji_count=count_emojis(text),
            has_excessive_emojis=has_excessive_emojis(text),
            has_generic_response=self.has_generic_response(text),
            has_crypto_spam=self.has_crypto_spam(text),
            has_adult_content_promo=self.has_adult_content_promo(text),
            has_promotional_content=self.has_promotional_content(text),
            link_count=len(_URL_RE.findall(text)),
            has_suspicious_links=self.has_suspicious_links(text),
            avg_sentence_length=avg_sentence_length(text),
            vocabulary_diversity=vocabulary_diversity(text),
            formality_score=formality_score(text),
            is_new_account=(
                meta.account_age is not None and meta.account_age < NEW_ACCOUNT_DAYS
            ),
            has_suspicious_name=(
                is_suspicious_username(meta.username) if meta.username else False
            ),
            has_affiliate_badge=meta.has_affiliate_badge,
            has_emoji_username=(
                has_emoji_in_name(meta.display_name) if meta.display_name else False
            ),
            is_very_short_tweet=0 < total_words <= 3 and len(text) < 30,
            is_shallow_comment=is_shallow_comment(text),
            is_duplicate_content=is_duplicate,
        )

    # --- Pattern-backed predicates ---

    def count_ai_words(self, text: str) -> int:
        return sum(len(regex.findall(text)) for regex in self.patterns.indicator_regexes)

    def match_ai_phrases(self, text: str) -> tuple[str, ...]:
        lower = text.lower()
        return tuple(p.source for p in self.patterns.ai_phrase_patterns if p.search(lower))

    def has_generic_response(self, text: str) -> bool:
        """Exact template, template plus trailing punctuation, or template inside the post."""
        lower = text.lower().strip()
        if not lower:
            return False
        for response in self.patterns.generic_responses:
            template = response.lower()
            if (
                lower == template
                or lower.startswith((template + " ", template + "!", template + "."))
                or " " + template in lower
            ):
                return True
        return False

    def has_crypto_spam(self, text: str) -> bool:
        lower = text.lower()
        matches = sum(
            1 for keyword in self.patterns.crypto_keywords
            if keyword in text or keyword.lower() in lower
        )
        return matches >= 2

    def has_adult_content_promo(self, text: str) -> bool:
        lower = text.lower()
        return any(k.lower() in lower for k in self.patterns.adult_content_keywords)

    def has_promotional_content(self, text: str) -> bool:
        return _count_present(
            text.lower(), tuple(p.lower() for p in self.patterns.promotional_phrases),
        ) >= 2

    def has_suspicious_links(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns.suspicious_link_patterns)
