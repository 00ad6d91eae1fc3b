"""
Feature Extraction Tests

Each predicate in isolation, then the extractor end to end against
the bundled vocabulary.
"""

from datetime import datetime, timezone

import pytest

from tweetdetect.features import (
    PostMetadata,
    avg_sentence_length,
    count_emojis,
    count_words,
    formality_score,
    has_balanced_commentary,
    has_conversational_hook,
    has_emoji_in_name,
    has_excessive_emojis,
    has_legal_jargon,
    has_mixed_formal_emoji,
    has_multiple_sources,
    is_shallow_comment,
    is_suspicious_username,
    vocabulary_diversity,
)


AI_TEXT = (
    "It's important to note that we must delve into the rich tapestry of this "
    "multifaceted issue; furthermore, solutions require thought."
)


# ============================================================
# TEXT METRICS
# ============================================================

class TestTextMetrics:

    def test_count_words(self):
        assert count_words("  one two\nthree ") == 3
        assert count_words("") == 0

    def test_count_emojis(self):
        assert count_emojis("\U0001F525\U0001F525 hi") == 2
        assert count_emojis("plain text") == 0

    def test_avg_sentence_length(self):
        assert avg_sentence_length("One two three. Four five!") == 2.5
        assert avg_sentence_length("") == 0.0
        assert avg_sentence_length("...") == 0.0

    def test_vocabulary_diversity(self):
        assert vocabulary_diversity("a a b b") == 0.5
        assert vocabulary_diversity("A a") == 0.5
        assert vocabulary_diversity("") == 0.0


class TestFormality:

    def test_blank_text(self):
        assert formality_score("") == 0.0
        assert formality_score("   ") == 0.0

    def test_neutral_baseline(self):
        assert formality_score("hello there") == 0.5

    def test_formal_connective(self):
        assert formality_score("therefore we proceed") == pytest.approx(0.65)

    def test_contraction_and_slang(self):
        assert formality_score("lol i can't") == pytest.approx(0.25)

    def test_curly_apostrophe_counts_as_contraction(self):
        assert formality_score("I can’t go") == pytest.approx(0.4)

    def test_slang_needs_whole_word(self):
        assert formality_score("free fries") == 0.5

    def test_clamped(self):
        text = "therefore furthermore moreover consequently thus hence"
        assert formality_score(text) == 1.0
        assert formality_score("lol lmao bruh ngl fr tbh can't won't") == 0.0


class TestEmojiSpam:

    def test_many_emojis_in_short_post(self):
        assert has_excessive_emojis("\U0001F525\U0001F525\U0001F525\U0001F525 wow") is True

    def test_trailing_run(self):
        assert has_excessive_emojis("great day \U0001F600\U0001F680") is True

    def test_emoji_only_line(self):
        assert has_excessive_emojis("Launch today\n\U0001F680\nsee you there") is True

    def test_repeated_emoji(self):
        assert has_excessive_emojis("ok \U0001F600\U0001F600 ok then") is True

    def test_single_emoji_is_fine(self):
        assert has_excessive_emojis("nice day \U0001F600 out there") is False
        assert has_excessive_emojis("hello there friend") is False


# ============================================================
# CONTENT PREDICATES
# ============================================================

class TestContentPredicates:

    def test_legal_jargon(self):
        text = "Pursuant to the statute, federal authorities must act."
        assert has_legal_jargon(text) is True
        assert has_legal_jargon("I like the law") is False

    def test_multiple_sources(self):
        assert has_multiple_sources("According to Reuters and the BBC, prices rose.") is True
        assert has_multiple_sources("Reuters says prices rose.") is False

    def test_balanced_commentary(self):
        text = (
            "Some say the new policy helps small businesses grow quickly. However, "
            "others argue it mostly benefits large firms that already dominate. "
            "On the other hand, the long term effects remain unclear to everyone."
        )
        assert has_balanced_commentary(text) is True
        assert has_balanced_commentary("However, on the other hand, yes.") is False

    def test_conversational_hook(self):
        assert has_conversational_hook("Big news today. What do you think?") is True
        assert has_conversational_hook("What’s your take?") is True
        assert has_conversational_hook("Big news today.") is False

    def test_mixed_formal_emoji(self):
        text = "therefore " + "word " * 50 + "\U0001F680"
        assert has_mixed_formal_emoji(text) is True
        assert has_mixed_formal_emoji("therefore short \U0001F680") is False
        assert has_mixed_formal_emoji("word " * 60) is False


class TestUserSignals:

    @pytest.mark.parametrize("handle", ["John12345", "@hib77", "John_Smith123", "user123456789"])
    def test_suspicious_usernames(self, handle):
        assert is_suspicious_username(handle) is True

    @pytest.mark.parametrize("handle", ["alice", "Alice_Smith", "@TheRealBob"])
    def test_plain_usernames(self, handle):
        assert is_suspicious_username(handle) is False

    def test_emoji_in_name(self):
        assert has_emoji_in_name("Sam \U0001F680") is True
        assert has_emoji_in_name("Sam") is False


class TestShallowComment:

    @pytest.mark.parametrize("text", [
        "Nice!",
        "\U0001F525\U0001F525\U0001F525",
        "\u2764\ufe0f",
        "love this!",
        "wonderful",
        "oh my god!!",
        "So true.",
    ])
    def test_shallow(self, text):
        assert is_shallow_comment(text) is True

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        "I really think this proposal has merit",
        "love the new bridge design downtown",
    ])
    def test_not_shallow(self, text):
        assert is_shallow_comment(text) is False


class TestPostMetadata:

    def test_camel_case_aliases(self):
        meta = PostMetadata.from_dict({
            "username": "bob",
            "displayName": "Bob",
            "isVerified": True,
            "hasAffiliateBadge": True,
            "accountAge": 12,
            "timestamp": "2024-01-01T00:00:00Z",
        })
        assert meta.display_name == "Bob"
        assert meta.is_verified is True
        assert meta.has_affiliate_badge is True
        assert meta.account_age == 12
        assert meta.timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_bad_values_are_dropped(self):
        meta = PostMetadata.from_dict({"accountAge": "old", "timestamp": "yesterday", "username": ""})
        assert meta.account_age is None
        assert meta.timestamp is None
        assert meta.username is None

    def test_empty(self):
        assert PostMetadata.from_dict(None) == PostMetadata()


# ============================================================
# EXTRACTOR
# ============================================================

class TestFeatureExtractor:

    def test_ai_text(self, extractor):
        f = extractor.extract(AI_TEXT)
        assert f.total_words == 20
        assert f.ai_word_count == 4
        assert f.ai_phrase_matches == (
            "it'?s important to note", "delve into", "(rich|vibrant) tapestry",
        )
        assert f.semicolon_count == 1
        assert f.formality_score == pytest.approx(0.65)
        assert f.vocabulary_diversity == 1.0
        assert f.is_duplicate_content is False

    def test_none_text(self, extractor):
        f = extractor.extract(None)
        assert f.total_words == 0
        assert f.is_very_short_tweet is False
        assert f.is_shallow_comment is False
        assert f.vocabulary_diversity == 0.0
        assert f.formality_score == 0.0

    def test_indicator_words_whole_word_only(self, extractor):
        assert extractor.count_ai_words("Delve, DELVE and delved") == 2

    def test_generic_response(self, extractor):
        assert extractor.has_generic_response("Great post!") is True
        assert extractor.has_generic_response("I think this is a great post") is True
        assert extractor.has_generic_response("great posting tips") is False
        assert extractor.has_generic_response("") is False

    def test_crypto_spam_needs_two_keywords(self, extractor):
        assert extractor.has_crypto_spam("Bitcoin to the moon") is True
        assert extractor.has_crypto_spam("I lost my wallet") is False

    def test_adult_promo(self, extractor):
        assert extractor.has_adult_content_promo("link to my OnlyFans") is True
        assert extractor.has_adult_content_promo("link to my blog") is False

    def test_promotional_needs_two_phrases(self, extractor):
        assert extractor.has_promotional_content("Follow me and use code SAVE") is True
        assert extractor.has_promotional_content("Sign up for the newsletter") is False

    def test_suspicious_links(self, extractor):
        assert extractor.has_suspicious_links("see bit.ly/abc") is True
        assert extractor.has_suspicious_links("see https://example.com") is False

    def test_structure(self, extractor):
        assert extractor.extract("1. first\n2. second").has_numbered_list is True
        assert extractor.extract("• point one").has_bullet_points is True
        assert extractor.extract("Under Section 230 platforms are shielded").has_citations is True

    def test_long_thread(self, extractor):
        text = "\n\n".join(" ".join(f"w{p}x{i}" for i in range(40)) for p in range(3))
        f = extractor.extract(text)
        assert f.paragraph_count == 3
        assert f.is_long_thread is True

    def test_very_short(self, extractor):
        assert extractor.extract("ok cool").is_very_short_tweet is True
        assert extractor.extract("this one has more than three words").is_very_short_tweet is False

    def test_metadata_flags(self, extractor):
        f = extractor.extract("hello world", {
            "username": "John12345",
            "accountAge": 10,
            "hasAffiliateBadge": True,
            "displayName": "Bot \U0001F916",
        })
        assert f.is_new_account is True
        assert f.has_suspicious_name is True
        assert f.has_affiliate_badge is True
        assert f.has_emoji_username is True

    def test_account_age_boundaries(self, extractor):
        assert extractor.extract("a post", {"accountAge": 90}).is_new_account is False
        assert extractor.extract("a post", {}).is_new_account is False

    def test_duplicate_across_authors(self, extractor):
        text = "Buy this amazing product now"
        assert extractor.extract(text, {"username": "a"}).is_duplicate_content is False
        assert extractor.extract(text + "!", {"username": "b"}).is_duplicate_content is True

    def test_extract_records_post(self, extractor):
        extractor.extract("remember this one", {"username": "a"})
        assert "remember this one" in extractor.tracker

    def test_as_dict(self, extractor):
        data = extractor.extract(AI_TEXT).as_dict()
        assert isinstance(data["ai_phrase_matches"], list)
        assert data["ai_word_count"] == 4
