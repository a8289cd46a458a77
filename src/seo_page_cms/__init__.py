"""
SEO Page CMS

Content management core for SEO-optimized page components that:
- Extracts headings, paragraphs and SEO metadata from component markup
- Scores pages against target keywords loaded from CSV/Excel files
- Patches edited content back into the original components
- Runs transactional bulk find/replace across stored pages
"""

__version__ = "1.0.0"
__author__ = "SEO Page CMS Team"

from .config import CmsConfig

from .models import (
    Keyword,
    NodeKind,
    ContentNode,
    ContentTree,
    SeoMeta,
    ScoreBreakdown,
    StuffingAlert,
    AnalysisReport,
    DocumentChange,
    BulkEditResult,
)

from .extractor import extract, extract_file, extract_batch, extract_files
from .scoring import score
from .reconstructor import render, patch, patch_file
from .bulk_edit import BulkEditEngine, BulkEditError, BulkEditValidationError
from .storage import PageRepository, StorageError
from .keyword_loader import KeywordLoadError, load_keywords
from .export import ExportError, build_export_archive

__all__ = [
    # Config
    "CmsConfig",
    # Models
    "Keyword",
    "NodeKind",
    "ContentNode",
    "ContentTree",
    "SeoMeta",
    "ScoreBreakdown",
    "StuffingAlert",
    "AnalysisReport",
    "DocumentChange",
    "BulkEditResult",
    # Extraction
    "extract",
    "extract_file",
    "extract_batch",
    "extract_files",
    # Scoring
    "score",
    # Reconstruction
    "render",
    "patch",
    "patch_file",
    # Bulk edit
    "BulkEditEngine",
    "BulkEditError",
    "BulkEditValidationError",
    # Storage
    "PageRepository",
    "StorageError",
    # Keywords and export
    "KeywordLoadError",
    "load_keywords",
    "ExportError",
    "build_export_archive",
]
