"""FastAPI application for the olio local JSON API."""

import secrets
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from .. import __version__
from ..core.links import target_from_input
from ..core.serialize import document_to_dict, link_to_dict, segment_to_dict
from ..format.links import (
    find_link_at_position,
    parse_markdown_links,
    remove_markdown_link,
    replace_selection_with_link,
    update_link_target,
)
from ..lint import lint_document


class ContentRequest(BaseModel):
    """Raw document text."""
    content: str


class PositionRequest(BaseModel):
    """Document text plus a character offset."""
    content: str
    offset: int = Field(ge=0)


class InsertLinkRequest(BaseModel):
    """Replace a selection with a link token."""
    content: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    target: str
    label: str = "link"


class EditLinkRequest(BaseModel):
    """Retarget the link under an offset."""
    content: str
    offset: int = Field(ge=0)
    target: str
    label: str | None = None


def _insertion(result: Any) -> dict[str, Any]:
    return {"content": result.content, "cursor": result.cursor, "token": result.token}


def create_app(runtime: Any, token: str | None = None, enable_cors: bool = False) -> FastAPI:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime instance with library, parser and resolver
        token: Bearer token for authentication (None to disable auth)
        enable_cors: Enable CORS middleware

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Olio API",
        description="Local JSON API for olio help articles",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or credentials.credentials != token:
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    def require_article(article_id: str) -> Any:
        article = runtime.library.get(article_id)
        if article is None:
            raise HTTPException(status_code=404, detail=f"Article {article_id} not found")
        return article

    def require_link(content: str, offset: int) -> Any:
        link = find_link_at_position(content, offset)
        if link is None:
            raise HTTPException(status_code=404, detail=f"No link at offset {offset}")
        return link

    def parse_target(raw: str) -> Any:
        try:
            return target_from_input(raw)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    @app.get("/health")
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.get("/articles")
    async def list_articles(
        published: bool = Query(False, description="Only published articles"),
        auth: None = Depends(verify_token),
    ) -> list[dict[str, Any]]:
        """List help articles."""
        return [
            {"id": a.id, "slug": a.slug, "title": a.title, "summary": a.summary, "published": a.published}
            for a in runtime.library.articles(published_only=published)
        ]

    @app.get("/articles/{article_id}")
    async def get_article(article_id: str, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Get article metadata and content."""
        article = require_article(article_id)
        return {
            "id": article.id,
            "title": article.title,
            "slug": article.slug,
            "summary": article.summary,
            "published": article.published,
            "meta": dict(article.meta),
            "content": article.content,
        }

    @app.get("/articles/{article_id}/document")
    async def get_article_document(article_id: str, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Get the parsed block tree of an article."""
        article = require_article(article_id)
        return document_to_dict(runtime.parser.parse(article.content))

    @app.get("/articles/{article_id}/lint")
    async def lint_article(article_id: str, auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        """Lint an article's links and references."""
        article = require_article(article_id)
        findings = lint_document(article.content, runtime.resolver, parser=runtime.parser)
        return [
            {"severity": f.severity, "message": f.message, "line": f.line, "start": f.start, "end": f.end}
            for f in findings
        ]

    @app.get("/articles/{article_id}/html", response_class=HTMLResponse)
    async def get_article_html(article_id: str, auth: None = Depends(verify_token)) -> str:
        """Render an article to HTML."""
        article = require_article(article_id)
        document = runtime.parser.parse(article.content)
        return runtime.renderer_for([a.id for a in document.anchors]).render(document)

    @app.post("/parse")
    async def parse(body: ContentRequest, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Parse raw text into blocks."""
        return document_to_dict(runtime.parser.parse(body.content))

    @app.post("/links")
    async def links(body: ContentRequest, auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        """Split raw text into text and link segments."""
        return [segment_to_dict(s) for s in parse_markdown_links(body.content)]

    @app.post("/links/at")
    async def link_at(body: PositionRequest, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Get the link under an offset."""
        return link_to_dict(require_link(body.content, body.offset))

    @app.post("/links/insert")
    async def insert_link(body: InsertLinkRequest, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Replace a selection with a link token."""
        if not body.start <= body.end <= len(body.content):
            raise HTTPException(status_code=400, detail="Selection outside document")
        target = parse_target(body.target)
        try:
            result = replace_selection_with_link(
                body.content, body.start, body.end, body.label, target
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return _insertion(result)

    @app.post("/links/remove")
    async def remove_link(body: PositionRequest, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Replace the link under an offset with its label."""
        link = require_link(body.content, body.offset)
        return {"content": remove_markdown_link(body.content, link), "label": link.label}

    @app.post("/links/edit")
    async def edit_link(body: EditLinkRequest, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Point the link under an offset at a new target."""
        link = require_link(body.content, body.offset)
        target = parse_target(body.target)
        return _insertion(update_link_target(body.content, link, target, body.label))

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
