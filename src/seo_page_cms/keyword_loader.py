"""
Target keyword lists from spreadsheet exports.

Supported inputs are CSV and Excel (.xlsx, .xls) files with a keyword
column and an optional priority column. Higher priority keywords are
scored first.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

import pandas as pd

from .models import Keyword

logger = logging.getLogger(__name__)


class KeywordLoadError(Exception):
    """Raised when a keyword file cannot be turned into a keyword list."""
    pass


# Accepted header spellings, compared after normalization.
KEYWORD_COLUMN_VARIANTS = ["keyword", "keywords", "term", "terms", "query", "queries", "phrase"]
PRIORITY_COLUMN_VARIANTS = ["priority", "rank", "weight", "importance"]


def _normalize_column_name(name) -> str:
    return "_".join(str(name).lower().replace("-", " ").split())


def _match_column(columns, variants: list[str]) -> Optional[str]:
    """Return the first column whose normalized name is one of ``variants``."""
    by_name = {_normalize_column_name(col): col for col in columns}
    return next((by_name[v] for v in variants if v in by_name), None)


def _read_csv(path: Path, sheet_name: Optional[str] = None) -> pd.DataFrame:
    try:
        return pd.read_csv(path, encoding="utf-8")
    except UnicodeDecodeError:
        logger.debug(f"{path.name} is not UTF-8, retrying as latin-1")
        return pd.read_csv(path, encoding="latin-1")


def _read_excel(path: Path, sheet_name: Optional[str] = None) -> pd.DataFrame:
    return pd.read_excel(path, sheet_name=sheet_name or 0)


_READERS: dict[str, Callable[..., pd.DataFrame]] = {
    ".csv": _read_csv,
    ".xlsx": _read_excel,
    ".xls": _read_excel,
}


def _read_frame(path: Path, reader: Callable[..., pd.DataFrame], sheet_name: Optional[str]) -> pd.DataFrame:
    if not path.exists():
        raise KeywordLoadError(f"File not found: {path}")
    try:
        return reader(path, sheet_name)
    except pd.errors.EmptyDataError:
        raise KeywordLoadError("Keyword file is empty")
    except Exception as e:
        raise KeywordLoadError(f"Failed to read {path.suffix.lstrip('.').upper()} file: {e}") from e


def keywords_from_dataframe(df: pd.DataFrame) -> list[Keyword]:
    """
    Convert a keyword table into Keyword objects, keeping row order.

    Blank keyword cells are dropped. Missing or non-numeric priorities
    become 0.

    Raises:
        KeywordLoadError: If the table is empty, has no keyword column, or
            holds no non-blank keyword.
    """
    if df.empty:
        raise KeywordLoadError("Keyword file is empty")

    keyword_col = _match_column(df.columns, KEYWORD_COLUMN_VARIANTS)
    if keyword_col is None:
        raise KeywordLoadError(
            f"No keyword column found. Expected one of: {', '.join(KEYWORD_COLUMN_VARIANTS)}. "
            f"Found columns: {', '.join(str(c) for c in df.columns)}"
        )

    phrases = df[keyword_col].astype("string").str.strip()
    priority_col = _match_column(df.columns, PRIORITY_COLUMN_VARIANTS)
    if priority_col is None:
        priorities = pd.Series(0, index=df.index)
    else:
        priorities = pd.to_numeric(df[priority_col], errors="coerce").fillna(0)

    keep = phrases.notna() & (phrases != "")
    keywords = [
        Keyword(phrase=str(phrase), priority=int(priority))
        for phrase, priority in zip(phrases[keep], priorities[keep])
    ]
    if not keywords:
        raise KeywordLoadError("No valid keywords found in file")
    return keywords


def load_keywords_from_csv(file_path: Union[str, Path]) -> list[Keyword]:
    """Load keywords from a CSV file (UTF-8, falling back to latin-1)."""
    return keywords_from_dataframe(_read_frame(Path(file_path), _read_csv, None))


def load_keywords_from_excel(file_path: Union[str, Path], sheet_name: Optional[str] = None) -> list[Keyword]:
    """Load keywords from an Excel workbook, first sheet unless ``sheet_name`` is given."""
    return keywords_from_dataframe(_read_frame(Path(file_path), _read_excel, sheet_name))


def load_keywords(file_path: Union[str, Path], sheet_name: Optional[str] = None) -> list[Keyword]:
    """
    Load keywords, picking the reader from the file extension.

    Args:
        file_path: CSV or Excel file.
        sheet_name: Excel sheet to read. Ignored for CSV.

    Returns:
        Keywords in file order.

    Raises:
        KeywordLoadError: If the format is unsupported or the file is invalid.
    """
    path = Path(file_path)
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise KeywordLoadError(
            f"Unsupported file format: {path.suffix.lower()}. Supported formats: {', '.join(_READERS)}"
        )
    keywords = keywords_from_dataframe(_read_frame(path, reader, sheet_name))
    logger.info(f"Loaded {len(keywords)} keywords from {path.name}")
    return keywords


def deduplicate_keywords(keywords: list[Keyword]) -> list[Keyword]:
    """Drop case-insensitive repeats, keeping the first occurrence."""
    first_by_phrase: dict[str, Keyword] = {}
    for kw in keywords:
        first_by_phrase.setdefault(kw.phrase.lower(), kw)
    return list(first_by_phrase.values())


def sort_keywords_by_priority(keywords: list[Keyword]) -> list[Keyword]:
    """Sort keywords by priority, highest first; ties keep file order."""
    return sorted(keywords, key=lambda kw: kw.priority, reverse=True)


def keyword_spec(keywords: list[Keyword]) -> list[str]:
    """Ordered keyword phrases as consumed by the scoring engine."""
    return [kw.phrase for kw in sort_keywords_by_priority(deduplicate_keywords(keywords))]
