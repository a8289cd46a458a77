"""
Pytest fixtures and configuration for SEO Page CMS tests.
"""

import pytest
from pathlib import Path

from seo_page_cms.models import ContentTree, NodeKind, SeoMeta
from seo_page_cms.storage import PageRepository


SAMPLE_PAGE = """import React from 'react';
import SEOHead from '../components/SEOHead';

export default function AboutUs() {
  return (
    <>
      <SEOHead
        title="About Our Framing Studio in Houston Heights"
        description="Family-owned custom framing studio serving Houston Heights since 1998."
        keywords="custom framing, art framing"
        canonicalUrl="https://example.com/about-us"
      />

      <div className="container mx-auto">
        <h1 className="text-4xl">About Our Studio</h1>
        <p className="lead">Custom framing has been our craft for more than twenty years in the Heights.</p>
        <h2>Our <strong>Story</strong></h2>
        <p>Short blurb.</p>
        <p>We frame art, photographs and memorabilia using conservation materials that last.</p>
        <h3></h3>
        <pre>This preformatted block is long enough to pass for a paragraph if matched.</pre>
      </div>
    </>
  );
}
"""

FIRST_PARAGRAPH = "Custom framing has been our craft for more than twenty years in the Heights."
SECOND_PARAGRAPH = "We frame art, photographs and memorabilia using conservation materials that last."


@pytest.fixture
def sample_page_text() -> str:
    """Page component markup with headings, paragraphs and SEO attributes."""
    return SAMPLE_PAGE


@pytest.fixture
def sample_page_file(tmp_path: Path) -> Path:
    """Write the sample page component to a file named after its slug."""
    page_path = tmp_path / "about-us.tsx"
    page_path.write_text(SAMPLE_PAGE, encoding="utf-8")
    return page_path


@pytest.fixture
def sample_tree() -> ContentTree:
    """A small content tree built directly from models."""
    tree = ContentTree(
        slug="custom-framing",
        document_type="service",
        seo_meta=SeoMeta(
            title="Custom Framing in Houston",
            description="Museum-quality custom framing for art and photographs.",
            keywords="custom framing",
            canonical_url="https://example.com/custom-framing",
        ),
    )
    tree.add_node(NodeKind.H1, "Custom Framing")
    tree.add_node(NodeKind.PARAGRAPH, "Our custom framing service protects your artwork with archival materials.")
    tree.add_node(NodeKind.H2, "Why Choose Us")
    tree.add_node(NodeKind.PARAGRAPH, "Every frame is cut and joined by hand in our Houston Heights workshop.")
    return tree


@pytest.fixture
def repository(tmp_path: Path):
    """A page repository backed by a temporary SQLite file."""
    repo = PageRepository(tmp_path / "cms.db")
    yield repo
    repo.close()


@pytest.fixture
def sample_keywords_csv(tmp_path: Path) -> Path:
    """Create a sample keywords CSV file with priorities."""
    csv_path = tmp_path / "keywords.csv"
    csv_content = """keyword,priority
custom framing,5
art framing,2
picture frames,9
shadow boxes,
"""
    csv_path.write_text(csv_content)
    return csv_path


@pytest.fixture
def sample_keywords_excel(tmp_path: Path) -> Path:
    """Create a sample keywords Excel file."""
    import pandas as pd

    xlsx_path = tmp_path / "keywords.xlsx"
    data = {
        "Keyword": ["custom framing", "art framing", "picture frames"],
        "Priority": [1, 3, 2],
    }
    df = pd.DataFrame(data)
    df.to_excel(xlsx_path, index=False)
    return xlsx_path
