"""Tests for keyword loading functionality."""

import pytest
from pathlib import Path

from seo_page_cms.keyword_loader import (
    KeywordLoadError,
    deduplicate_keywords,
    keyword_spec,
    load_keywords,
    load_keywords_from_csv,
    load_keywords_from_excel,
    sort_keywords_by_priority,
)
from seo_page_cms.models import Keyword


class TestLoadKeywordsFromCSV:
    """Tests for CSV keyword loading."""

    def test_load_valid_csv(self, sample_keywords_csv: Path):
        """Test loading a valid CSV file."""
        keywords = load_keywords_from_csv(sample_keywords_csv)

        assert len(keywords) == 4
        assert all(isinstance(kw, Keyword) for kw in keywords)
        assert keywords[0].phrase == "custom framing"
        assert keywords[0].priority == 5

    def test_missing_priority_defaults_to_zero(self, sample_keywords_csv: Path):
        keywords = load_keywords_from_csv(sample_keywords_csv)
        assert keywords[-1] == Keyword("shadow boxes", 0)

    def test_no_priority_column(self, tmp_path: Path):
        csv_path = tmp_path / "plain.csv"
        csv_path.write_text("Term\nframing\n  mats  \n")

        keywords = load_keywords_from_csv(csv_path)

        assert keywords == [Keyword("framing", 0), Keyword("mats", 0)]

    def test_load_nonexistent_csv(self, tmp_path: Path):
        """Test loading a non-existent file raises error."""
        with pytest.raises(KeywordLoadError, match="File not found"):
            load_keywords_from_csv(tmp_path / "nonexistent.csv")

    def test_load_csv_without_keyword_column(self, tmp_path: Path):
        """Test loading CSV without required keyword column."""
        csv_path = tmp_path / "bad.csv"
        csv_path.write_text("volume,difficulty\n100,50\n200,60")

        with pytest.raises(KeywordLoadError, match="No keyword column found"):
            load_keywords_from_csv(csv_path)

    def test_load_empty_csv(self, tmp_path: Path):
        """Test loading empty CSV raises error."""
        csv_path = tmp_path / "empty.csv"
        csv_path.write_text("keyword\n")

        with pytest.raises(KeywordLoadError, match="empty"):
            load_keywords_from_csv(csv_path)

    def test_load_zero_byte_csv(self, tmp_path: Path):
        csv_path = tmp_path / "blank.csv"
        csv_path.write_text("")

        with pytest.raises(KeywordLoadError, match="empty"):
            load_keywords_from_csv(csv_path)

    def test_blank_keywords_only(self, tmp_path: Path):
        csv_path = tmp_path / "blank_rows.csv"
        csv_path.write_text("keyword,priority\n   ,1\n,2\n")

        with pytest.raises(KeywordLoadError, match="No valid keywords"):
            load_keywords_from_csv(csv_path)


class TestLoadKeywordsFromExcel:
    """Tests for Excel keyword loading."""

    def test_load_valid_excel(self, sample_keywords_excel: Path):
        """Test loading a valid Excel file."""
        keywords = load_keywords_from_excel(sample_keywords_excel)

        assert [kw.phrase for kw in keywords] == ["custom framing", "art framing", "picture frames"]
        assert [kw.priority for kw in keywords] == [1, 3, 2]

    def test_load_nonexistent_excel(self, tmp_path: Path):
        with pytest.raises(KeywordLoadError, match="File not found"):
            load_keywords_from_excel(tmp_path / "nonexistent.xlsx")


class TestLoadKeywords:
    """Tests for format detection."""

    def test_csv_detection(self, sample_keywords_csv: Path):
        assert len(load_keywords(sample_keywords_csv)) == 4

    def test_excel_detection(self, sample_keywords_excel: Path):
        assert len(load_keywords(sample_keywords_excel)) == 3

    def test_unsupported_format(self, tmp_path: Path):
        txt_path = tmp_path / "keywords.txt"
        txt_path.write_text("framing")

        with pytest.raises(KeywordLoadError, match="Unsupported file format"):
            load_keywords(txt_path)


class TestKeywordUtilities:
    """Tests for deduplication, ordering and the scoring keyword list."""

    def test_deduplicate_keeps_first(self):
        keywords = [Keyword("Framing", 1), Keyword("framing", 9), Keyword("mats", 2)]

        unique = deduplicate_keywords(keywords)

        assert unique == [Keyword("Framing", 1), Keyword("mats", 2)]

    def test_sort_by_priority_is_stable(self):
        keywords = [Keyword("a", 1), Keyword("b", 3), Keyword("c", 1)]

        assert [kw.phrase for kw in sort_keywords_by_priority(keywords)] == ["b", "a", "c"]

    def test_keyword_spec(self, sample_keywords_csv: Path):
        """Test the ordered phrase list handed to scoring."""
        spec = keyword_spec(load_keywords(sample_keywords_csv))
        assert spec == ["picture frames", "custom framing", "art framing", "shadow boxes"]
