"""
Confidence Scorer

Maps a FeatureVector to a confidence in [0, 1] plus up to five
human-readable reasons. Pure function of the feature vector.

Scoring:
  Eight weighted categories. Each one builds a sub-score from fixed
  per-feature increments, clamps it to 1, then multiplies by its
  weight:
    ai_word 0.25, ai_phrase 0.30, punctuation 0.15, structure 0.12,
    spam 0.15, bot_spam 0.35, stylometric 0.18, metadata 0.10
  Three flat additions bypass the weights:
    very short +0.6, shallow comment +0.7, duplicate content +0.8
  Confidence = min(total, 1). Reasons keep generation order
  (categories above, flat additions last) and are cut to five.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from tweetdetect.features import FeatureVector

CATEGORY_WEIGHTS: dict[str, float] = {
    "ai_word": 0.25,
    "ai_phrase": 0.30,
    "punctuation": 0.15,
    "structure": 0.12,
    "spam": 0.15,
    "bot_spam": 0.35,
    "stylometric": 0.18,
    "metadata": 0.10,
}

MAX_REASONS = 5

# ai_word: ratio must exceed this to score, and REASON_RATIO to be reported
AI_WORD_MIN_RATIO = 0.01
AI_WORD_REASON_RATIO = 0.02
AI_WORD_RATIO_SCALE = 25
AI_PHRASE_INCREMENT = 0.6


@dataclass(frozen=True)
class Rule:
    """One feature's contribution to a category sub-score."""
    name: str
    increment: float
    applies: Callable[[FeatureVector], bool]
    reason: Union[str, Callable[[FeatureVector], str], None] = None

    def describe(self, features: FeatureVector) -> Optional[str]:
        if callable(self.reason):
            return self.reason(features)
        return self.reason


# ============================================================
# CATEGORY RULES
# ============================================================

CATEGORY_RULES: dict[str, tuple[Rule, ...]] = {
    "punctuation": (
        Rule("em_dash", 0.5, lambda f: f.em_dash_count >= 1,
             lambda f: f"Excessive em-dashes ({f.em_dash_count})"),
        Rule("colons", 0.4, lambda f: f.colon_count >= 2),
        Rule("semicolons", 0.4, lambda f: f.semicolon_count >= 1),
        Rule("quotes", 0.3, lambda f: f.quotation_count >= 3,
             "Excessive quotation marks"),
    ),
    "structure": (
        Rule("bullet_points", 0.5, lambda f: f.has_bullet_points,
             "Bullet points in tweet"),
        Rule("numbered_list", 0.5, lambda f: f.has_numbered_list,
             "Numbered list format"),
        Rule("long_thread", 0.6, lambda f: f.is_long_thread,
             "Long multi-paragraph thread format"),
        Rule("citations", 0.7, lambda f: f.has_citations,
             "Contains legal citations"),
        Rule("legal_jargon", 0.6, lambda f: f.has_legal_jargon,
             "Heavy legal/formal jargon"),
        Rule("mixed_formal_emoji", 0.7, lambda f: f.has_mixed_formal_emoji,
             "Formal text with emoji ending (bot pattern)"),
        Rule("multiple_sources", 0.8, lambda f: f.has_multiple_sources,
             "Multiple source citations (AI pattern)"),
        Rule("balanced_commentary", 0.7, lambda f: f.has_balanced_commentary,
             "Artificial both-sides balanced commentary"),
        Rule("conversational_hook", 0.6, lambda f: f.has_conversational_hook,
             "Question hook asking for engagement"),
    ),
    "spam": (
        Rule("hashtags", 0.5, lambda f: f.hashtag_count > 3,
             lambda f: f"Excessive hashtags ({f.hashtag_count})"),
        Rule("mentions", 0.5, lambda f: f.mention_count > 2,
             lambda f: f"Excessive mentions ({f.mention_count})"),
        Rule("excessive_emojis", 0.6, lambda f: f.has_excessive_emojis,
             lambda f: f"Excessive emojis detected ({f.emoji_count} emojis)"),
        Rule("generic_response", 0.6, lambda f: f.has_generic_response,
             "Generic/bot-like response"),
    ),
    "bot_spam": (
        Rule("crypto_spam", 0.6, lambda f: f.has_crypto_spam,
             "Crypto/financial spam detected"),
        Rule("adult_promo", 0.7, lambda f: f.has_adult_content_promo,
             "Adult content promotion detected"),
        Rule("promotional", 0.5, lambda f: f.has_promotional_content,
             "Promotional/engagement bait"),
        Rule("links", 0.3, lambda f: f.link_count >= 2,
             lambda f: f"Multiple links ({f.link_count})"),
        Rule("suspicious_links", 0.4, lambda f: f.has_suspicious_links,
             "Suspicious link patterns"),
    ),
    "stylometric": (
        # A post without words has no vocabulary to judge
        Rule("low_diversity", 0.5,
             lambda f: f.total_words > 0 and f.vocabulary_diversity < 0.75,
             "Low vocabulary diversity"),
        Rule("high_formality", 0.5, lambda f: f.formality_score > 0.5,
             "High formality score"),
    ),
    "metadata": (
        Rule("new_account", 0.4, lambda f: f.is_new_account, "New account"),
        Rule("suspicious_name", 0.6, lambda f: f.has_suspicious_name,
             "Suspicious username pattern"),
        Rule("affiliate_badge", 0.7, lambda f: f.has_affiliate_badge,
             "Account has affiliate badge"),
        Rule("emoji_username", 0.5, lambda f: f.has_emoji_username,
             "Emoji-heavy username"),
    ),
}

# Added straight to the total, unweighted
FLAT_RULES: tuple[Rule, ...] = (
    Rule("very_short", 0.6, lambda f: f.is_very_short_tweet,
         "Very short low-effort tweet"),
    Rule("shallow_comment", 0.7, lambda f: f.is_shallow_comment,
         "Shallow engagement-bait comment"),
    Rule("duplicate_content", 0.8, lambda f: f.is_duplicate_content,
         "Duplicate/copied content detected"),
)


# ============================================================
# RESULT
# ============================================================

@dataclass(frozen=True)
class ScoreResult:
    confidence: float
    reasons: tuple[str, ...]
    breakdown: dict = field(default_factory=dict, hash=False, compare=False)


def _ai_word_subscore(features: FeatureVector) -> tuple[float, list[str]]:
    ratio = features.ai_word_ratio
    if ratio <= AI_WORD_MIN_RATIO:
        return 0.0, []
    reasons = []
    if ratio > AI_WORD_REASON_RATIO:
        reasons.append(f"High AI vocabulary usage ({ratio * 100:.1f}%)")
    return ratio * AI_WORD_RATIO_SCALE, reasons


def _ai_phrase_subscore(features: FeatureVector) -> tuple[float, list[str]]:
    matches = features.ai_phrase_matches
    if not matches:
        return 0.0, []
    return (
        len(matches) * AI_PHRASE_INCREMENT,
        [f"AI phrase patterns detected: {', '.join(matches[:2])}"],
    )


def _rule_subscore(
    rules: tuple[Rule, ...], features: FeatureVector,
) -> tuple[float, list[str], list[str]]:
    sub = 0.0
    reasons = []
    fired = []
    for rule in rules:
        if rule.applies(features):
            sub += rule.increment
            fired.append(rule.name)
            text = rule.describe(features)
            if text:
                reasons.append(text)
    return sub, reasons, fired


def score(features: FeatureVector) -> ScoreResult:
    """
    Calculate confidence and reasons for one feature vector.

    Returns:
        ScoreResult whose breakdown records every category's clamped
        sub-score, weighted contribution and fired rules, plus the
        flat additions applied.
    """
    total = 0.0
    reasons: list[str] = []
    breakdown: dict = {"categories": {}, "flat_additions": {}}

    for category, weight in CATEGORY_WEIGHTS.items():
        if category == "ai_word":
            sub, category_reasons = _ai_word_subscore(features)
            fired = ["ai_word_ratio"] if sub else []
        elif category == "ai_phrase":
            sub, category_reasons = _ai_phrase_subscore(features)
            fired = list(features.ai_phrase_matches)
        else:
            sub, category_reasons, fired = _rule_subscore(
                CATEGORY_RULES[category], features,
            )

        sub = min(sub, 1.0)
        contribution = sub * weight
        total += contribution
        reasons.extend(category_reasons)
        breakdown["categories"][category] = {
            "sub_score": round(sub, 4),
            "weight": weight,
            "contribution": round(contribution, 4),
            "fired": fired,
        }

    for rule in FLAT_RULES:
        if rule.applies(features):
            total += rule.increment
            breakdown["flat_additions"][rule.name] = rule.increment
            reasons.append(rule.describe(features))

    confidence = min(total, 1.0)
    breakdown["raw_total"] = round(total, 4)
    breakdown["reasons_total"] = len(reasons)
    breakdown["confidence"] = round(confidence, 4)

    return ScoreResult(
        confidence=confidence,
        reasons=tuple(reasons[:MAX_REASONS]),
        breakdown=breakdown,
    )
