"""Tests for the SEO scoring engine."""

import pytest

from seo_page_cms.config import CmsConfig
from seo_page_cms.models import ContentTree, NodeKind, SeoMeta
from seo_page_cms.scoring import (
    build_corpus,
    calculate_density,
    calculate_readability,
    count_keyword,
    score,
    stuffing_tier,
)


def _tree_with_text(text: str, title: str = "", description: str = "") -> ContentTree:
    tree = ContentTree(slug="page", seo_meta=SeoMeta(title=title, description=description))
    tree.add_node(NodeKind.PARAGRAPH, text)
    return tree


def _category(report, name: str):
    return next(item for item in report.category_breakdown if item.category == name)


class TestCountKeyword:
    """Tests for whole-phrase keyword counting."""

    def test_whole_words_only(self):
        assert count_keyword("frame", "framed frames frame") == 1

    def test_case_insensitive(self):
        assert count_keyword("Houston", "houston HOUSTON Houston") == 3

    def test_phrase_spans_any_whitespace(self):
        """Test that internal whitespace in a phrase matches any run of whitespace."""
        assert count_keyword("custom framing", "Custom  framing and custom\nframing") == 2

    def test_non_word_edges(self):
        """Test keywords that end in punctuation."""
        assert count_keyword("c++", "I like c++ and c++.") == 2

    def test_regex_characters_are_literal(self):
        assert count_keyword("a.b", "axb a.b") == 1

    def test_blank_keyword(self):
        assert count_keyword("  ", "anything") == 0


class TestMetrics:
    """Tests for density, readability and stuffing tiers."""

    def test_density(self):
        """Test that 6 occurrences in 200 words is 3.0%."""
        assert calculate_density(6, 200) == 3.0

    def test_density_rounding(self):
        assert calculate_density(1, 3) == 33.33

    def test_density_zero_words(self):
        assert calculate_density(0, 0) == 0.0

    def test_readability_zero_words(self):
        assert calculate_readability("", 0) == 0.0

    def test_readability_clamped_high(self):
        """Test that short sentences clamp to 100."""
        assert calculate_readability("One two three. Four five six.", 6) == 100.0

    def test_readability_long_sentence(self):
        """Test the score for one 200-word sentence."""
        text = " ".join(["word"] * 200)
        assert calculate_readability(text, 200) == pytest.approx(3.8)

    def test_readability_clamped_low(self):
        text = " ".join(["word"] * 300)
        assert calculate_readability(text, 300) == 0.0

    @pytest.mark.parametrize("density,expected", [
        (0.0, None),
        (4.0, None),
        (4.01, ("low", "Low")),
        (5.0, ("low", "Low")),
        (5.01, ("medium", "Medium")),
        (6.0, ("medium", "Medium")),
        (6.01, ("high", "High")),
    ])
    def test_stuffing_tiers(self, density: float, expected):
        """Test stuffing tier boundaries."""
        assert stuffing_tier(density) == expected

    def test_corpus_concatenation(self, sample_tree: ContentTree):
        """Test that the corpus is title, description, then node text."""
        corpus = build_corpus(sample_tree)

        assert corpus.startswith("Custom Framing in Houston Museum-quality")
        assert corpus.endswith("Houston Heights workshop.")


class TestScore:
    """Tests for the full analysis report."""

    def test_zero_word_document(self):
        """Test that an empty document scores without errors."""
        report = score(ContentTree(slug="blank"), ["framing"])

        assert report.word_count == 0
        assert report.readability_score == 0.0
        assert report.keyword_density == {"framing": 0.0}
        assert report.overall_score == 0
        assert report.has_h1 is False
        assert report.has_meta_description is False
        assert report.title_status == "red"
        assert report.first_paragraph_status == "red"
        quality = _category(report, "Content Quality")
        assert "Content too short (0 words, recommended: 500+)" in quality.issues
        assert "Missing H1 heading" in quality.issues

    def test_score_is_repeatable(self, sample_tree: ContentTree):
        """Test that repeated scoring of unchanged input is identical."""
        keywords = ["custom framing", "houston"]
        assert score(sample_tree, keywords) == score(sample_tree, keywords)

    def test_title_scenario(self):
        """Test a 41-character title that names no target keyword."""
        title = "Custom Picture Framing Houston Heights TX"

        report = score(_tree_with_text("Some words here.", title=title), ["art gallery"])
        title_score = _category(report, "Title Optimization")

        assert report.title_length == 41
        assert report.title_status == "yellow"
        assert report.title_has_keyword is False
        assert title_score.score == 5
        assert title_score.status == "red"

    def test_acceptable_title_without_keyword(self):
        """Test that a 41-character title without a keyword scores 5 and is red."""
        title = "Custom Picture Framing Studio in the City"
        assert len(title) == 41

        report = score(_tree_with_text("Some words here.", title=title), ["houston"])
        title_score = _category(report, "Title Optimization")

        assert report.title_length == 41
        assert report.title_status == "yellow"
        assert report.title_has_keyword is False
        assert title_score.score == 5
        assert title_score.status == "red"
        assert title_score.issues == [
            "Title length is 41 chars (optimal: 50-60)",
            "Title should include a target keyword",
        ]

    def test_optimal_density(self):
        """Test a keyword at exactly 3% density."""
        text = " ".join(["framing"] * 6 + ["word"] * 194)

        report = score(_tree_with_text(text), ["framing"])
        density = _category(report, "Keyword Density")

        assert report.word_count == 200
        assert report.keyword_density["framing"] == 3.0
        assert density.score == 25
        assert density.status == "green"
        assert report.stuffing_alerts == []

    def test_stuffing_alert(self):
        """Test that 5% density raises a low-risk stuffing alert."""
        text = " ".join(["framing"] * 10 + ["word"] * 190)

        report = score(_tree_with_text(text), ["framing"])

        assert len(report.stuffing_alerts) == 1
        alert = report.stuffing_alerts[0]
        assert alert.keyword == "framing"
        assert alert.density == 5.0
        assert alert.severity == "low"
        assert alert.penalty_risk == "Low"
        assert alert.current_count == 10
        assert alert.recommended_count == 6
        assert any(s.startswith('KEYWORD STUFFING: "framing"') for s in report.suggestions)

    def test_density_score_rounds_half_up(self):
        """Test that a 18.5 density total reports 19."""
        text = " ".join(["alpha"] * 2 + ["beta"] * 4 + ["filler"] * 94)

        report = score(_tree_with_text(text), ["alpha", "beta"])
        density = _category(report, "Keyword Density")

        assert report.keyword_density == {"alpha": 2.0, "beta": 4.0}
        assert density.score == 19
        assert density.status == "green"
        assert density.issues == ['"beta" density too high (4.0%, target: 1-3%)']

    def test_no_keywords(self):
        """Test scoring without configured keywords."""
        report = score(_tree_with_text("Plenty of words in this sentence."), [])
        density = _category(report, "Keyword Density")

        assert report.keyword_density == {}
        assert density.score == 0
        assert density.issues == ["No target keywords configured"]

    def test_duplicate_and_blank_keywords_ignored(self):
        text = " ".join(["framing"] * 2 + ["word"] * 98)

        report = score(_tree_with_text(text), ["framing", "", "framing"])

        assert list(report.keyword_density) == ["framing"]

    def test_case_variant_keywords_count_once(self):
        """Test that differently cased repeats do not split the density score."""
        text = " ".join(["framing"] * 2 + ["word"] * 98)

        report = score(_tree_with_text(text), ["Framing", "framing"])

        assert report.keyword_density == {"Framing": 2.0}
        assert _category(report, "Keyword Density").score == 25

    def test_keyword_in_first_sentence(self):
        """Test that only the first sentence of the first paragraph counts."""
        report = score(_tree_with_text("Framing is our trade. We love Houston."), ["houston"])
        assert report.keyword_in_first_sentence is False

        report = score(_tree_with_text("Houston framing since 1998. More text."), ["houston"])
        assert report.keyword_in_first_sentence is True

    def test_multiple_h1(self):
        tree = ContentTree(slug="page")
        tree.add_node(NodeKind.H1, "One")
        tree.add_node(NodeKind.H1, "Two")

        report = score(tree, [])

        assert report.h1_count == 2
        assert "Multiple H1 tags found (2), should have exactly 1" in _category(report, "Content Quality").issues

    def test_overall_is_sum_of_categories(self, sample_tree: ContentTree):
        report = score(sample_tree, ["custom framing", "houston"])

        assert report.overall_score == sum(item.score for item in report.category_breakdown)
        assert [item.max_score for item in report.category_breakdown] == [20, 15, 20, 25, 20]

    def test_score_does_not_mutate_tree(self, sample_tree: ContentTree):
        before = sample_tree.to_dict()
        score(sample_tree, ["custom framing"])
        assert sample_tree.to_dict() == before

    def test_locality_suggestion(self):
        """Test the local SEO title suggestion and disabling it."""
        tree = _tree_with_text("Some words.", title="Custom Framing Studio")

        report = score(tree, [])
        assert 'Consider adding "Houston Heights" to your title tag for local SEO.' in report.suggestions

        report = score(tree, [], CmsConfig(required_locality=""))
        assert not any("local SEO" in s for s in report.suggestions)

    def test_report_to_dict(self, sample_tree: ContentTree):
        data = score(sample_tree, ["custom framing"]).to_dict()

        assert data["category_breakdown"][0]["category"] == "Title Optimization"
        assert "stuffing_alerts" in data
