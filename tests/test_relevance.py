"""
Tests for the relevance gate that runs before deep analysis.
"""

from dealscout.tools.relevance import is_relevant, matches_keyword


class TestMatchesKeyword:
    def test_case_insensitive_substring(self):
        assert matches_keyword("Looking to EXIT my shop", ["exit"]) is True

    def test_blank_keywords_never_match(self):
        assert matches_keyword("anything at all", ["", "   "]) is False

    def test_no_keywords(self):
        assert matches_keyword("anything at all", []) is False


class TestIsRelevant:
    def test_keyword_match_admits_post(self):
        """An operator keyword wins even over advice-style wording."""
        assert is_relevant("How to grow: lessons learned", "Some advice for you", ["grow"]) is True

    def test_advice_posts_are_vetoed(self):
        """Two or more advice phrases with no commercial phrase reject the post."""
        assert is_relevant(
            "Lessons learned on my journey",
            "Some advice on running a business and a startup with revenue",
        ) is False

    def test_commercial_phrase_lifts_veto(self):
        assert is_relevant(
            "Lessons learned and advice before selling my business",
            "",
        ) is True

    def test_commercial_plus_one_relevance_keyword(self):
        assert is_relevant("Selling my SaaS", "") is True

    def test_three_relevance_keywords_without_commercial_phrase(self):
        assert is_relevant("Bootstrap indie SaaS hits a revenue milestone", "") is True

    def test_two_relevance_keywords_are_not_enough(self):
        assert is_relevant("My indie startup", "It was fun.") is False

    def test_unrelated_post(self):
        assert is_relevant("What a nice day", "Pictures of my cat") is False

    def test_missing_title_and_body(self):
        assert is_relevant(None, None, ["selling"]) is False

    def test_opinion_post_without_business_terms(self):
        assert is_relevant("My thoughts on leadership culture", "", ["selling"]) is False

    def test_multi_word_keyword_verbatim_in_body(self):
        assert is_relevant("Weekly update", "We finally got ramen profitable this month", ["ramen profitable"]) is True
