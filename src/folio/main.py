"""Folio preview application.

Serves the content directory read-only: JSON listings for tooling and
rendered HTML previews for authors.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from folio.config import settings
from folio.core.exceptions import NotFound, ParseError
from folio.core.models import Document
from folio.core.renderer import render_document
from folio.core.storage import FileContentStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: configure logging."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Serving content from %s", store.base_path)
    yield


# Initialize app
app = FastAPI(
    title=settings.app_title,
    debug=settings.debug,
    lifespan=lifespan,
)

templates_path = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(templates_path))

# Initialize storage
store = FileContentStore(settings.content_dir)


def get_context(request: Request, **kwargs) -> dict:
    """Create base context for templates."""
    return {
        "request": request,
        "app_title": settings.app_title,
        **kwargs,
    }


def _resolve_drafts(drafts: bool | None) -> bool:
    return settings.include_drafts if drafts is None else drafts


def _document_summary(document: Document) -> dict:
    """JSON-friendly listing entry (no body)."""
    return {
        "path": document.path,
        "title": document.title,
        "date": document.date.isoformat(),
        "updated": document.updated.isoformat(),
        "description": document.description,
        "draft": document.draft,
        "permalink": document.permalink,
        "reading_time": document.reading_time,
    }


def _load(path: str) -> Document:
    """Load a document, mapping store errors to HTTP errors."""
    try:
        return store.get_document(path)
    except NotFound:
        raise HTTPException(status_code=404, detail="Document not found")
    except ParseError as e:
        raise HTTPException(status_code=422, detail=e.reason)


@app.get("/", response_class=HTMLResponse)
def index(request: Request, drafts: bool | None = None):
    """Home page - list documents in site order."""
    result = store.scan(include_drafts=_resolve_drafts(drafts))
    return templates.TemplateResponse(
        request,
        "list.html",
        get_context(request, documents=result.documents, errors=result.errors),
    )


@app.get("/api/documents")
def api_list_documents(include_drafts: bool | None = None):
    """List document metadata, plus the files that failed to parse."""
    result = store.scan(include_drafts=_resolve_drafts(include_drafts))
    return {
        "documents": [_document_summary(d) for d in result.documents],
        "errors": [{"path": e.path, "reason": e.reason} for e in result.errors],
    }


@app.get("/api/documents/{path:path}")
def api_get_document(path: str):
    """Get one document, including its raw Markdown body."""
    document = _load(path)
    return {**_document_summary(document), "body": document.body}


@app.get("/preview/{path:path}", response_class=HTMLResponse)
def preview_document(request: Request, path: str):
    """Render a document to HTML."""
    document = _load(path)
    html_content, toc_html = render_document(
        document, document_exists=store.document_exists
    )
    return templates.TemplateResponse(
        request,
        "document.html",
        get_context(
            request,
            document=document,
            html_content=html_content,
            toc_html=toc_html,
        ),
    )
