"""
FastAPI wrapper for SEO Page CMS.

This module exposes extraction, page storage, SEO analysis, bulk editing
and export as a REST API.
"""

import io
import sqlite3
import tempfile
from datetime import datetime
from typing import Any, Iterator, Optional

from fastapi import Depends, FastAPI, HTTPException, UploadFile, File, Form
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from seo_page_cms.bulk_edit import BulkEditEngine, BulkEditError, BulkEditValidationError
from seo_page_cms.config import CmsConfig
from seo_page_cms.export import ExportError, build_export_archive
from seo_page_cms.extractor import BatchExtraction, extract_batch
from seo_page_cms.keyword_loader import KeywordLoadError, load_keywords
from seo_page_cms.models import ContentTree, SeoMeta
from seo_page_cms.reconstructor import render
from seo_page_cms.scoring import score
from seo_page_cms.storage import PAGE_STATUSES, PageRepository, StorageError

API_VERSION = "1.0.0"

config = CmsConfig.from_env()

app = FastAPI(
    title="SEO Page CMS API",
    description="Extract, score, edit and export page component content",
    version=API_VERSION,
)

# Enable CORS for all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_repository() -> Iterator[PageRepository]:
    """Open the page repository for one request."""
    repository = PageRepository(config.database_path)
    try:
        yield repository
    finally:
        repository.close()


class SeoMetaInput(BaseModel):
    """SEO attribute values."""
    title: str = ""
    description: str = ""
    keywords: str = ""
    canonical_url: str = ""

    def to_seo_meta(self) -> SeoMeta:
        return SeoMeta(**self.model_dump())


class SavePageRequest(BaseModel):
    """Create or update a page."""
    page_slug: str = Field(..., min_length=1)
    page_type: str = "general"
    content: dict[str, Any] = Field(default_factory=dict, description="Node key -> {type, content}")
    seo_meta: SeoMetaInput = Field(default_factory=SeoMetaInput)
    status: str = Field("draft", description=f"One of: {', '.join(PAGE_STATUSES)}")


class SavePageResponse(BaseModel):
    success: bool
    message: str
    page_slug: str
    version: int


class BulkEditRequest(BaseModel):
    """Bulk find/replace request."""
    find_text: str
    replace_text: str = ""
    target_fields: list[str] = Field(default_factory=lambda: ["content", "seo_meta"])
    page_slugs: list[str] = Field(default_factory=list)
    dry_run: bool = False


class AnalyzeRequest(BaseModel):
    page_slug: str


class LiveAnalyzeRequest(BaseModel):
    """Analyze unsaved editor state."""
    content: dict[str, Any] = Field(default_factory=dict)
    seo_meta: Optional[SeoMetaInput] = None


class ExportRequest(BaseModel):
    page_slugs: list[str] = Field(default_factory=list, description="Pages to export; empty exports all")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    database: str


def _batch_response(result: BatchExtraction) -> dict:
    return {
        "success": True,
        "total_files": result.total,
        "successful_extractions": result.successful,
        "contents": [tree.to_dict() for tree in result.trees],
        "failures": [{"file": name, "error": error} for name, error in result.failures],
    }


@app.get("/api/health", response_model=HealthResponse)
async def health_check(repository: PageRepository = Depends(get_repository)):
    """Health check endpoint."""
    try:
        repository.connection.execute("SELECT 1")
    except sqlite3.Error:
        return HealthResponse(status="unhealthy", version=API_VERSION, database="disconnected")
    return HealthResponse(status="healthy", version=API_VERSION, database="connected")


@app.post("/api/extract/batch")
async def extract_uploads(
    files: list[UploadFile] = File(..., description="Page component source files"),
    save: bool = Form(False),
    status: str = Form("draft"),
    repository: PageRepository = Depends(get_repository),
):
    """
    Extract content from uploaded page components.

    Files that are too large or not UTF-8 are reported as failures; the
    rest are extracted (and saved when ``save`` is set).
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > config.max_upload_files:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files: {len(files)}, maximum is {config.max_upload_files}",
        )
    if status not in PAGE_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status: {status}")

    sources: list[tuple[str, str]] = []
    failures: list[tuple[str, str]] = []
    for upload in files:
        name = upload.filename or "upload"
        data = await upload.read()
        if len(data) > config.max_upload_bytes:
            failures.append((name, f"File exceeds {config.max_upload_bytes} bytes"))
            continue
        try:
            sources.append((Path(name).stem, data.decode("utf-8")))
        except UnicodeDecodeError as e:
            failures.append((name, f"Not valid UTF-8: {e}"))

    result = extract_batch(sources)
    result.total += len(failures)
    result.failures.extend(failures)

    if save:
        try:
            with repository.transaction():
                for tree in result.trees:
                    repository.save(tree, status=status)
        except StorageError as e:
            raise HTTPException(status_code=500, detail=str(e))

    return _batch_response(result)


@app.post("/api/pages/save", response_model=SavePageResponse)
async def save_page(request: SavePageRequest, repository: PageRepository = Depends(get_repository)):
    """Create a page or supersede it, archiving the previous version."""
    tree = ContentTree.from_content_payload(
        slug=request.page_slug,
        document_type=request.page_type,
        seo_meta=request.seo_meta.to_seo_meta(),
        payload=request.content,
    )
    try:
        version = repository.save(tree, status=request.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))

    message = "Page created successfully" if version == 1 else "Page updated successfully"
    return SavePageResponse(success=True, message=message, page_slug=tree.slug, version=version)


@app.get("/api/pages")
async def list_pages(
    page_type: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    repository: PageRepository = Depends(get_repository),
):
    """List pages with optional type, status and text filters."""
    records = repository.list(page_type=page_type, status=status, search=search)
    return {
        "success": True,
        "pages": [record.to_dict() for record in records],
        "total": len(records),
    }


@app.get("/api/pages/{slug}")
async def get_page(slug: str, repository: PageRepository = Depends(get_repository)):
    """Fetch one page."""
    record = repository.get(slug)
    if record is None:
        raise HTTPException(status_code=404, detail="Page not found")
    return {"success": True, "page": record.to_dict()}


@app.get("/api/pages/{slug}/versions")
async def get_page_versions(slug: str, repository: PageRepository = Depends(get_repository)):
    """List archived versions of a page."""
    if repository.get(slug) is None:
        raise HTTPException(status_code=404, detail="Page not found")
    versions = repository.list_versions(slug)
    return {
        "success": True,
        "versions": [
            {"version": v.version, "created_at": v.created_at, "page": v.tree.to_dict()}
            for v in versions
        ],
    }


@app.get("/api/pages/{slug}/render")
async def render_page(slug: str, repository: PageRepository = Depends(get_repository)):
    """Render a stored page as component source."""
    tree = repository.load(slug)
    if tree is None:
        raise HTTPException(status_code=404, detail="Page not found")
    return {"success": True, "filename": f"{tree.slug}.tsx", "source": render(tree)}


@app.post("/api/bulk-edit/execute")
async def execute_bulk_edit(request: BulkEditRequest, repository: PageRepository = Depends(get_repository)):
    """
    Find and replace literal text across pages.

    With ``dry_run`` the changes are reported but not saved. Otherwise every
    page is saved in one transaction; a failure leaves all pages unchanged.
    """
    try:
        result = BulkEditEngine(repository).execute(
            request.page_slugs,
            request.find_text,
            request.replace_text,
            request.target_fields,
            dry_run=request.dry_run,
        )
    except BulkEditValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BulkEditError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {"success": True, **result.to_dict()}


@app.post("/api/seo/analyze")
async def analyze_page(request: AnalyzeRequest, repository: PageRepository = Depends(get_repository)):
    """Score a stored page against the configured keywords."""
    tree = repository.load(request.page_slug)
    if tree is None:
        raise HTTPException(status_code=404, detail="Page not found")

    report = score(tree, repository.get_active_keywords(), config)
    return {
        "success": True,
        "analysis": report.to_dict(),
        "page": {"slug": tree.slug, "title": tree.seo_meta.title},
    }


@app.post("/api/seo/analyze/live")
async def analyze_live(request: LiveAnalyzeRequest, repository: PageRepository = Depends(get_repository)):
    """Score unsaved editor content for real-time feedback."""
    seo_meta = request.seo_meta.to_seo_meta() if request.seo_meta else SeoMeta()
    tree = ContentTree.from_content_payload(
        slug="temp",
        document_type="general",
        seo_meta=seo_meta,
        payload=request.content,
    )
    report = score(tree, repository.get_active_keywords(), config)
    return {"success": True, "analysis": report.to_dict()}


@app.get("/api/keywords")
async def list_keywords(repository: PageRepository = Depends(get_repository)):
    """Configured target keywords, highest priority first."""
    return {"success": True, "keywords": repository.get_active_keywords()}


@app.post("/api/keywords/upload")
async def upload_keywords(
    keywords_file: UploadFile = File(..., description="Keywords file (CSV or Excel)"),
    repository: PageRepository = Depends(get_repository),
):
    """Replace the configured keywords with those in an uploaded file."""
    if not keywords_file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    kw_suffix = Path(keywords_file.filename).suffix.lower()
    keywords_path = None
    try:
        with tempfile.NamedTemporaryFile(suffix=kw_suffix, delete=False) as tmp:
            tmp.write(await keywords_file.read())
            keywords_path = Path(tmp.name)

        try:
            keywords = load_keywords(keywords_path)
        except KeywordLoadError as e:
            raise HTTPException(status_code=400, detail=str(e))

        repository.set_keywords(keywords)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        if keywords_path and keywords_path.exists():
            keywords_path.unlink()

    return {"success": True, "keywords": repository.get_active_keywords()}


@app.post("/api/pages/export/zip")
async def export_pages(request: ExportRequest, repository: PageRepository = Depends(get_repository)):
    """Export rendered pages as a ZIP archive."""
    if request.page_slugs:
        trees = [tree for tree in (repository.load(s) for s in request.page_slugs) if tree is not None]
    else:
        trees = [record.tree for record in repository.list()]

    try:
        archive = build_export_archive(trees)
    except ExportError:
        raise HTTPException(status_code=404, detail="No pages found")

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return StreamingResponse(
        io.BytesIO(archive),
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="pages-export-{timestamp}.zip"',
            "X-Export-Total": str(len(trees)),
        },
    )


@app.get("/api/info")
async def api_info():
    """Get API information and usage instructions."""
    return {
        "name": "SEO Page CMS API",
        "version": API_VERSION,
        "endpoints": {
            "GET /api/health": "Health check",
            "POST /api/extract/batch": "Extract content from uploaded page components",
            "POST /api/pages/save": "Create or update a page",
            "GET /api/pages": "List pages (filters: page_type, status, search)",
            "GET /api/pages/{slug}": "Fetch a page",
            "GET /api/pages/{slug}/versions": "List archived versions of a page",
            "GET /api/pages/{slug}/render": "Render a page as component source",
            "POST /api/bulk-edit/execute": "Bulk find and replace (supports dry run)",
            "POST /api/seo/analyze": "Score a stored page",
            "POST /api/seo/analyze/live": "Score unsaved content",
            "GET /api/keywords": "List target keywords",
            "POST /api/keywords/upload": "Replace target keywords from CSV/Excel",
            "POST /api/pages/export/zip": "Export pages as a ZIP archive",
        },
        "documentation": "/docs",
        "openapi": "/openapi.json",
    }
