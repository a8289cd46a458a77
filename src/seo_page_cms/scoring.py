"""
SEO scoring engine.

Scores a ContentTree against a list of target keywords:
- Word count, keyword density and a simplified Flesch readability score
- Title and first-paragraph checks
- Keyword stuffing alerts with tiered penalty risk
- A weighted 100-point breakdown across five categories
- The legacy flat suggestion list

Scoring is pure: it never mutates the tree and never raises for missing
data. An empty title or a document with no words is a valid, scorable state.
"""

import logging
import math
import re
from typing import Optional

from .config import CmsConfig
from .models import (
    AnalysisReport,
    ContentTree,
    NodeKind,
    ScoreBreakdown,
    Status,
    StuffingAlert,
)

logger = logging.getLogger(__name__)


# Title length (characters)
TITLE_OPTIMAL = (50, 60)
TITLE_ACCEPTABLE = (40, 70)

# Meta description length (characters)
DESCRIPTION_OPTIMAL = (150, 160)
DESCRIPTION_ACCEPTABLE = (120, 170)

# First paragraph length (words)
FIRST_PARAGRAPH_OPTIMAL = (150, 200)
FIRST_PARAGRAPH_ACCEPTABLE = (100, 250)

# Keyword density (percent)
DENSITY_OPTIMAL = (1.0, 3.0)
DENSITY_ACCEPTABLE = (0.5, 5.0)
STUFFING_THRESHOLD = 4.0
STUFFING_MEDIUM = 5.0
STUFFING_HIGH = 6.0
RECOMMENDED_DENSITY = 3.0

# Content quality
WORD_COUNT_TARGET = 500
WORD_COUNT_MINIMUM = 300
READABILITY_TARGET = 60
READABILITY_MINIMUM = 40

# Legacy suggestions
DESCRIPTION_MIN_CHARS = 120
DESCRIPTION_MAX_CHARS = 160

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_FIRST_SENTENCE_RE = re.compile(r"[.!?]")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _status(score: float, green: float, yellow: float) -> Status:
    if score >= green:
        return "green"
    if score >= yellow:
        return "yellow"
    return "red"


def _range_status(value: int, optimal: tuple[int, int], acceptable: tuple[int, int]) -> Status:
    """Green inside the inclusive optimal range, yellow inside [lo, hi) acceptable."""
    if optimal[0] <= value <= optimal[1]:
        return "green"
    if acceptable[0] <= value < acceptable[1]:
        return "yellow"
    return "red"


def build_corpus(tree: ContentTree) -> str:
    """Concatenate title, description and node text, separated by spaces."""
    parts = [tree.seo_meta.title, tree.seo_meta.description]
    parts.extend(node.text for node in tree.nodes.values())
    return " ".join(parts)


def keyword_pattern(keyword: str) -> re.Pattern:
    """
    Compile a case-insensitive whole-word/phrase pattern for a keyword.

    Internal whitespace matches any run of whitespace. Word boundaries are
    asserted only on edges that are word characters, so keywords such as
    "c++" or ".net" still match.
    """
    phrase = keyword.strip().lower()
    body = r"\s+".join(re.escape(part) for part in phrase.split())
    prefix = r"(?<!\w)" if re.match(r"\w", phrase) else ""
    suffix = r"(?!\w)" if re.search(r"\w$", phrase) else ""
    return re.compile(f"{prefix}{body}{suffix}", re.IGNORECASE)


def count_keyword(keyword: str, text: str) -> int:
    """Count whole-phrase occurrences of a keyword in text."""
    if not keyword.strip():
        return 0
    return len(keyword_pattern(keyword).findall(text))


def calculate_density(count: int, word_count: int) -> float:
    """Percentage of words accounted for by a keyword, rounded to 2 decimals."""
    if word_count <= 0:
        return 0.0
    return round(count / word_count * 100, 2)


def calculate_readability(text: str, word_count: int) -> float:
    """
    Simplified Flesch reading ease based on average sentence length.

    Returns:
        Score clamped to 0-100 and rounded to 1 decimal; 0 for empty text.
    """
    if word_count <= 0:
        return 0.0
    sentences = [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]
    avg_words_per_sentence = word_count / len(sentences) if sentences else 0
    score = 206.835 - 1.015 * avg_words_per_sentence
    return round(max(0.0, min(100.0, score)), 1)


def stuffing_tier(density: float) -> Optional[tuple[str, str]]:
    """
    Classify a keyword density for stuffing risk.

    Returns:
        (severity, penalty_risk) or None when density is at or below 4%.
    """
    if density <= STUFFING_THRESHOLD:
        return None
    if density > STUFFING_HIGH:
        return "high", "High"
    if density > STUFFING_MEDIUM:
        return "medium", "Medium"
    return "low", "Low"


def _contains_any(text: str, keywords: list[str]) -> bool:
    text_lower = text.lower()
    return any(kw.lower() in text_lower for kw in keywords)


def _score_title(title_length: int, has_keyword: bool) -> ScoreBreakdown:
    score = 0
    issues: list[str] = []

    if TITLE_OPTIMAL[0] <= title_length <= TITLE_OPTIMAL[1]:
        score += 10
    else:
        if TITLE_ACCEPTABLE[0] <= title_length < TITLE_ACCEPTABLE[1]:
            score += 5
        issues.append(f"Title length is {title_length} chars (optimal: 50-60)")

    if has_keyword:
        score += 10
    else:
        issues.append("Title should include a target keyword")

    return ScoreBreakdown(
        category="Title Optimization",
        score=score,
        max_score=20,
        status=_status(score, 15, 10),
        issues=issues,
    )


def _score_description(description_length: int) -> ScoreBreakdown:
    score = 0
    issues: list[str] = []

    if DESCRIPTION_OPTIMAL[0] <= description_length <= DESCRIPTION_OPTIMAL[1]:
        score += 15
    elif DESCRIPTION_ACCEPTABLE[0] <= description_length < DESCRIPTION_ACCEPTABLE[1]:
        score += 10
        issues.append(f"Description length is {description_length} chars (optimal: 150-160)")
    elif description_length > 0:
        score += 5
        issues.append(f"Description length is {description_length} chars (optimal: 150-160)")
    else:
        issues.append("Missing meta description")

    return ScoreBreakdown(
        category="Meta Description",
        score=score,
        max_score=15,
        status=_status(score, 12, 8),
        issues=issues,
    )


def _score_first_paragraph(word_count: int, keyword_in_first_sentence: bool) -> ScoreBreakdown:
    score = 0
    issues: list[str] = []

    if FIRST_PARAGRAPH_OPTIMAL[0] <= word_count <= FIRST_PARAGRAPH_OPTIMAL[1]:
        score += 10
    elif FIRST_PARAGRAPH_ACCEPTABLE[0] <= word_count < FIRST_PARAGRAPH_ACCEPTABLE[1]:
        score += 5
        issues.append(f"First paragraph has {word_count} words (optimal: 150-200)")
    elif word_count > 0:
        issues.append(f"First paragraph has {word_count} words (optimal: 150-200)")
    else:
        issues.append("No paragraphs found")

    if keyword_in_first_sentence:
        score += 10
    else:
        issues.append("Keyword should appear in first sentence")

    return ScoreBreakdown(
        category="First Paragraph",
        score=score,
        max_score=20,
        status=_status(score, 15, 10),
        issues=issues,
    )


def _score_keyword_density(keyword_density: dict[str, float]) -> ScoreBreakdown:
    total = 0.0
    issues: list[str] = []
    keyword_count = len(keyword_density)

    if keyword_count == 0:
        issues.append("No target keywords configured")

    for keyword, density in keyword_density.items():
        if DENSITY_OPTIMAL[0] <= density <= DENSITY_OPTIMAL[1]:
            total += 25 / keyword_count
        elif DENSITY_ACCEPTABLE[0] <= density < DENSITY_ACCEPTABLE[1]:
            total += 12 / keyword_count
            if density < DENSITY_OPTIMAL[0]:
                issues.append(f'"{keyword}" density too low ({density}%, target: 1-3%)')
            else:
                issues.append(f'"{keyword}" density too high ({density}%, target: 1-3%)')
        elif density == 0:
            issues.append(f'"{keyword}" not found in content')
        else:
            issues.append(f'"{keyword}" density critical ({density}%, target: 1-3%)')

    return ScoreBreakdown(
        category="Keyword Density",
        score=_round_half_up(total),
        max_score=25,
        status=_status(total, 18, 12),
        issues=issues,
    )


def _score_content_quality(word_count: int, h1_count: int, readability: float) -> ScoreBreakdown:
    score = 0
    issues: list[str] = []

    if word_count >= WORD_COUNT_TARGET:
        score += 10
    elif word_count >= WORD_COUNT_MINIMUM:
        score += 5
        issues.append(f"Content has {word_count} words (recommended: 500+)")
    else:
        issues.append(f"Content too short ({word_count} words, recommended: 500+)")

    if h1_count == 1:
        score += 5
    elif h1_count == 0:
        issues.append("Missing H1 heading")
    else:
        issues.append(f"Multiple H1 tags found ({h1_count}), should have exactly 1")

    if readability >= READABILITY_TARGET:
        score += 5
    elif readability >= READABILITY_MINIMUM:
        score += 2
        issues.append(f"Readability score is {readability:.1f} (target: 60+)")
    else:
        issues.append(f"Readability score is low ({readability:.1f}, target: 60+)")

    return ScoreBreakdown(
        category="Content Quality",
        score=score,
        max_score=20,
        status=_status(score, 15, 10),
        issues=issues,
    )


def _legacy_suggestions(
    tree: ContentTree,
    word_count: int,
    keyword_density: dict[str, float],
    config: CmsConfig,
) -> list[str]:
    suggestions: list[str] = []

    if word_count < WORD_COUNT_MINIMUM:
        suggestions.append("Content is too short. Aim for at least 500 words for better SEO.")

    for keyword, density in keyword_density.items():
        if density < DENSITY_OPTIMAL[0]:
            suggestions.append(f'Keyword "{keyword}" density is low ({density}%). Target: 1-3%')
        elif density > STUFFING_THRESHOLD:
            suggestions.append(
                f'KEYWORD STUFFING: "{keyword}" density is too high ({density}%). '
                "May trigger spam filters."
            )

    if config.checks_locality and config.required_locality not in tree.seo_meta.title.lower():
        suggestions.append(
            f'Consider adding "{config.locality_label}" to your title tag for local SEO.'
        )

    description_length = len(tree.seo_meta.description)
    if description_length < DESCRIPTION_MIN_CHARS:
        suggestions.append("Meta description is too short. Aim for 150-160 characters.")
    if description_length > DESCRIPTION_MAX_CHARS:
        suggestions.append("Meta description is too long. Keep it under 160 characters.")

    return suggestions


def score(
    tree: ContentTree,
    keywords: list[str],
    config: Optional[CmsConfig] = None,
) -> AnalysisReport:
    """
    Score a content tree against target keywords.

    Args:
        tree: The content tree to analyze. Not modified.
        keywords: Ordered target keyword phrases. Blank entries and
            case-insensitive repeats are ignored.
        config: Optional configuration (locality check). Defaults to CmsConfig().

    Returns:
        AnalysisReport with metrics, category breakdown and suggestions.
    """
    config = config or CmsConfig()
    first_by_phrase: dict[str, str] = {}
    for kw in keywords:
        if kw.strip():
            first_by_phrase.setdefault(kw.strip().lower(), kw)
    target_keywords = list(first_by_phrase.values())

    all_text = build_corpus(tree)
    corpus = all_text.lower()
    word_count = len(corpus.split())

    # Keyword density
    keyword_density: dict[str, float] = {}
    keyword_counts: dict[str, int] = {}
    for keyword in target_keywords:
        count = count_keyword(keyword, corpus)
        keyword_counts[keyword] = count
        keyword_density[keyword] = calculate_density(count, word_count)

    readability = calculate_readability(all_text, word_count)

    # Title
    title = tree.seo_meta.title
    title_length = len(title)
    title_status = _range_status(title_length, TITLE_OPTIMAL, TITLE_ACCEPTABLE)
    title_has_keyword = _contains_any(title, target_keywords)

    # First paragraph
    paragraphs = tree.nodes_of(NodeKind.PARAGRAPH)
    first_paragraph_word_count = 0
    keyword_in_first_sentence = False
    if paragraphs:
        first_text = paragraphs[0].text
        first_paragraph_word_count = len(first_text.split())
        first_sentence = _FIRST_SENTENCE_RE.split(first_text, maxsplit=1)[0]
        keyword_in_first_sentence = _contains_any(first_sentence, target_keywords)
    first_paragraph_status = _range_status(
        first_paragraph_word_count, FIRST_PARAGRAPH_OPTIMAL, FIRST_PARAGRAPH_ACCEPTABLE
    )

    # Stuffing alerts
    stuffing_alerts: list[StuffingAlert] = []
    for keyword in target_keywords:
        density = keyword_density[keyword]
        tier = stuffing_tier(density)
        if tier is None:
            continue
        severity, penalty_risk = tier
        stuffing_alerts.append(StuffingAlert(
            keyword=keyword,
            density=density,
            severity=severity,
            penalty_risk=penalty_risk,
            current_count=keyword_counts[keyword],
            recommended_count=math.floor(word_count * RECOMMENDED_DENSITY / 100),
        ))

    h1_count = tree.h1_count
    breakdown = [
        _score_title(title_length, title_has_keyword),
        _score_description(len(tree.seo_meta.description)),
        _score_first_paragraph(first_paragraph_word_count, keyword_in_first_sentence),
        _score_keyword_density(keyword_density),
        _score_content_quality(word_count, h1_count, readability),
    ]
    overall_score = sum(item.score for item in breakdown)

    logger.debug(f"Scored '{tree.slug}': {overall_score}/100 ({word_count} words)")

    return AnalysisReport(
        word_count=word_count,
        keyword_density=keyword_density,
        readability_score=readability,
        overall_score=overall_score,
        category_breakdown=breakdown,
        stuffing_alerts=stuffing_alerts,
        title_length=title_length,
        title_status=title_status,
        title_has_keyword=title_has_keyword,
        first_paragraph_word_count=first_paragraph_word_count,
        first_paragraph_status=first_paragraph_status,
        keyword_in_first_sentence=keyword_in_first_sentence,
        has_h1=h1_count > 0,
        h1_count=h1_count,
        has_meta_description=len(tree.seo_meta.description) > 0,
        suggestions=_legacy_suggestions(tree, word_count, keyword_density, config),
    )
