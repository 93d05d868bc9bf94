from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import analyses, outline, reviews
from app.config import settings
from app.errors import ContentScopeError, PipelineValidationError
from app.models.schemas import ErrorResponse
from app.services import logger as log_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_service.log_event("startup", "ContentScope API starting", model=settings.openrouter_model or settings.default_model)
    yield


app = FastAPI(
    title="ContentScope",
    description="Competitor content analysis and outline generation",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(outline.router)
app.include_router(analyses.router)
app.include_router(reviews.router)


def _error_response(status_code: int, message: str, *, code: str, manual_fallback: bool = False) -> JSONResponse:
    body = ErrorResponse(error=message, code=code, manual_fallback=manual_fallback)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@app.exception_handler(ContentScopeError)
async def content_scope_error_handler(request: Request, exc: ContentScopeError):
    log_service.log_event(
        event_type="request_failed",
        message=f"{request.method} {request.url.path} failed",
        code=exc.code,
        error=str(exc),
    )
    return _error_response(exc.status_code, str(exc), code=exc.code, manual_fallback=exc.manual_fallback)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()) if part != 'body')}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    return _error_response(400, problems or "Invalid request", code=PipelineValidationError.code)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log_service.logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(500, "Internal server error", code=ContentScopeError.code)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "contentscope"}
