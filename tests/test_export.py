"""Tests for ZIP export of rendered pages."""

import io
import zipfile

import pytest

from seo_page_cms.export import ExportError, build_export_archive, export_filename
from seo_page_cms.models import ContentTree
from seo_page_cms.reconstructor import render


class TestBuildExportArchive:
    """Tests for archive packaging."""

    def test_archive_contents(self, sample_tree: ContentTree):
        """Test that each page is rendered into the pages folder with a manifest."""
        other = ContentTree(slug="contact", document_type="contact")

        archive = build_export_archive([sample_tree, other])

        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            names = zf.namelist()
            assert names == ["pages/custom-framing.tsx", "pages/contact.tsx", "_manifest.txt"]
            assert zf.read("pages/custom-framing.tsx").decode("utf-8") == render(sample_tree)
            manifest = zf.read("_manifest.txt").decode("utf-8")

        assert "Total pages: 2" in manifest
        assert "pages/custom-framing.tsx (service, 4 sections)" in manifest

    def test_empty_export(self):
        with pytest.raises(ExportError, match="No pages to export"):
            build_export_archive([])

    def test_export_filename(self, sample_tree: ContentTree):
        assert export_filename(sample_tree) == "pages/custom-framing.tsx"
