"""
BreachWatch - FastAPI Backend
Email breach lookup, AI-written breach reports, breach discovery and alert
subscriptions for the BreachWatch website.

Every operation answers {"success": true, ...} or {"success": false, "error": ...}.
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from ai.llm import TextGenerator
from ai.report_generator import ReportGenerator
from breach.blog import BlogReader
from breach.crawler import BreachCrawler
from breach.lookup import DemoBreachFallback, LookupService, NoMatchFallback
from breach.subscriptions import SubscriptionManager
from config import Settings
from errors import BreachWatchError, ValidationError
from models import (
    BlogListResponse, BlogPostResponse, CheckEmailRequest, CheckEmailResponse, CrawlRequest,
    CrawlResponse, ErrorResponse, GenerateBlogRequest, GenerateBlogResponse, SubscribeRequest, SubscribeResponse,
)
from osint.web_search import FirecrawlSearch
from store.breach_store import BreachStore
from store.database import init_db, make_engine, make_session_factory

logger = logging.getLogger(__name__)

SERVICE_NAME = "BreachWatch"
CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


# ─── Dependencies ────────────────────────────────────────────────────
# Each request gets its own session and clients; tests override these.

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_store(db: Session = Depends(get_db)) -> BreachStore:
    return BreachStore(db)


def get_text_generator(settings: Settings = Depends(get_settings)) -> TextGenerator:
    return TextGenerator.from_settings(settings)


def get_search_client(settings: Settings = Depends(get_settings)):
    search = FirecrawlSearch(settings.firecrawl_api_key, timeout=settings.search_timeout)
    try:
        yield search
    finally:
        search.close()


def get_lookup_fallback(settings: Settings = Depends(get_settings)):
    return DemoBreachFallback() if settings.demo_mode else NoMatchFallback()


# ─── Error Handling ──────────────────────────────────────────────────

def error_response(error: BreachWatchError, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={**ErrorResponse(error=error.message).model_dump(), **extra},
    )


def run_operation(name: str, operation: Callable, **failure_extra):
    """Run one endpoint's work; any failure becomes the uniform error payload."""
    try:
        return operation()
    except BreachWatchError as e:
        logger.warning("%s failed (%s): %s", name, type(e).__name__, e.message)
        return error_response(e, **failure_extra)
    except Exception:
        logger.exception("Unexpected error in %s", name)
        return error_response(BreachWatchError("Unexpected server error"), **failure_extra)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    if first.get("type") == "json_invalid":
        message = "Request body must be valid JSON"
    else:
        loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {loc} {first.get('msg', '')}".replace("  ", " ").strip()
    return error_response(ValidationError(message))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework errors (unknown route, wrong method, unreadable body) in the same envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


# ─── Routes ──────────────────────────────────────────────────────────

router = APIRouter()


@router.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": SERVICE_NAME}


@router.post("/check-email", response_model=CheckEmailResponse)
def check_email_endpoint(req: CheckEmailRequest, store: BreachStore = Depends(get_store),
                         fallback=Depends(get_lookup_fallback)):
    """Look up the breaches a (hashed) email address appears in."""
    def operation():
        breaches = LookupService(store, fallback).check_email(req.email)
        return CheckEmailResponse(breaches=breaches, total=len(breaches))

    return run_operation("check-email", operation, breaches=[], total=0)


@router.post("/generate-blog", response_model=GenerateBlogResponse)
def generate_blog_endpoint(req: GenerateBlogRequest, store: BreachStore = Depends(get_store),
                           generator: TextGenerator = Depends(get_text_generator)):
    """
    Write (once) and publish a blog post about a breach.
    Repeat calls return the slug of the existing post.
    """
    def operation():
        result = ReportGenerator(store, generator).generate(req.breach_id)
        return GenerateBlogResponse(slug=result.slug, message=result.message, post=result.post)

    return run_operation("generate-blog", operation)


@router.post("/subscribe", response_model=SubscribeResponse)
def subscribe_endpoint(req: SubscribeRequest, store: BreachStore = Depends(get_store)):
    """Subscribe to (or, with action=unsubscribe, leave) breach alerts."""
    def operation():
        manager = SubscriptionManager(store)
        if req.action == "unsubscribe":
            result = manager.unsubscribe(req.email)
        else:
            result = manager.subscribe(req.email)
        return SubscribeResponse(
            message=result.message,
            status=result.status,
            already_subscribed=result.already_subscribed,
        )

    return run_operation("subscribe", operation)


@router.post("/crawl-breaches", response_model=CrawlResponse)
def crawl_breaches_endpoint(req: Optional[CrawlRequest] = None, store: BreachStore = Depends(get_store),
                            search: FirecrawlSearch = Depends(get_search_client),
                            generator: TextGenerator = Depends(get_text_generator)):
    """Search the web for new breaches and store the ones not yet known."""
    def operation():
        query = req.search_query if req else None
        result = BreachCrawler(store, search, generator).crawl(query)
        return CrawlResponse(message=result.message, breaches=result.breaches, raw_results=result.raw_results)

    return run_operation("crawl-breaches", operation)


@router.get("/blog", response_model=BlogListResponse)
def list_blog_posts(limit: int = Query(20, ge=1, le=100), offset: int = Query(0, ge=0),
                    store: BreachStore = Depends(get_store)):
    """Published posts, newest first."""
    def operation():
        posts, total = BlogReader(store).list_posts(limit=limit, offset=offset)
        return BlogListResponse(posts=posts, total=total)

    return run_operation("list-blog", operation)


@router.get("/blog/{slug}", response_model=BlogPostResponse)
def get_blog_post(slug: str, store: BreachStore = Depends(get_store)):
    def operation():
        return BlogPostResponse(post=BlogReader(store).get_post(slug))

    return run_operation("get-blog", operation)


# ─── App Factory ─────────────────────────────────────────────────────

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    engine = make_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s backend starting up (demo_mode=%s)", SERVICE_NAME, settings.demo_mode)
        init_db(engine)
        yield
        engine.dispose()
        logger.info("%s backend shutting down", SERVICE_NAME)

    app = FastAPI(
        title="BreachWatch API",
        description="Breach lookup, AI breach reports and alert subscriptions",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)

    # CORS: the website and preview deployments call this API from the browser
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=CORS_HEADERS,
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.include_router(router)
    return app


app = create_app()


# ─── Run with: uvicorn main:app --reload ─────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
