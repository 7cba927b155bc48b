import json
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from ragbot.config import settings
from ragbot.dependencies import AppContext, get_context
from ragbot.errors import InternalServerError, MethodNotAllowedError, RagbotError, RateLimitError
from ragbot.models import AnswerMetadata, AskResponse, HealthResponse, utc_timestamp
from ragbot.rag_service import validate_question
from ragbot.rate_limiter import client_identifier

logging.basicConfig(
    level=settings.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

ASK_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "86400",
}

HEALTH_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

ENDPOINTS = {"ask": "/api/ask", "health": "/api/health"}


def cors_headers_for(path: str) -> dict:
    return HEALTH_CORS_HEADERS if path.rstrip("/").endswith("/health") else ASK_CORS_HEADERS


@asynccontextmanager
async def lifespan(app: FastAPI):
    context = AppContext()
    await run_in_threadpool(context.init)
    app.state.context = context
    yield
    context.shutdown()


# Create FastAPI app
app = FastAPI(title="PDF RAG Chatbot", version=settings.VERSION, lifespan=lifespan)


@app.exception_handler(RagbotError)
async def ragbot_error_handler(request: Request, exc: RagbotError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    headers = {**cors_headers_for(request.url.path), **exc.headers}
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


@app.get("/")
async def read_root():
    return {"message": "RAG server running", "version": settings.VERSION}


# Ask endpoint
@app.options("/ask")
@app.options("/api/ask")
async def ask_preflight():
    return Response(status_code=200, headers=ASK_CORS_HEADERS)


@app.api_route("/ask", methods=["GET", "PUT", "DELETE", "PATCH"])
@app.api_route("/api/ask", methods=["GET", "PUT", "DELETE", "PATCH"])
async def ask_method_not_allowed():
    raise MethodNotAllowedError()


@app.post("/ask", response_model=AskResponse)
@app.post("/api/ask", response_model=AskResponse)
async def ask(request: Request, ctx: AppContext = Depends(get_context)):
    """Answer a question about the document."""
    rate_headers = {}
    try:
        client_id = client_identifier(
            request.headers.get("x-forwarded-for"),
            request.client.host if request.client else None,
        )
        decision = ctx.rate_limiter.check_and_record(client_id)
        if not decision.allowed:
            raise RateLimitError(retry_after=int(ctx.rate_limiter.window_seconds))

        rate_headers = {
            "X-RateLimit-Limit": str(ctx.rate_limiter.max_requests),
            "X-RateLimit-Remaining": str(decision.remaining),
        }

        raw_body = await request.body()
        try:
            body = json.loads(raw_body) if raw_body else None
        except ValueError:
            body = None
        question = validate_question(body)

        # Retrieval and generation block on network I/O and backoff sleeps
        result = await run_in_threadpool(ctx.rag_service.answer, question)
    except RagbotError as exc:
        exc.headers.update(rate_headers)
        raise
    except Exception as exc:
        logger.exception("Unexpected error in ask API")
        raise InternalServerError(detail=str(exc), headers=rate_headers) from exc

    response = AskResponse(
        answer=result.answer,
        metadata=AnswerMetadata(model=result.model, documents_found=result.documents_found),
    )
    return JSONResponse(
        status_code=200,
        content=response.model_dump(by_alias=True),
        headers={**ASK_CORS_HEADERS, **rate_headers},
    )


# Health check
@app.options("/health")
@app.options("/api/health")
async def health_preflight():
    return Response(status_code=200, headers=HEALTH_CORS_HEADERS)


@app.api_route("/health", methods=["POST", "PUT", "DELETE", "PATCH"])
@app.api_route("/api/health", methods=["POST", "PUT", "DELETE", "PATCH"])
async def health_method_not_allowed():
    raise MethodNotAllowedError("Only GET requests are accepted")


@app.get("/health", response_model=HealthResponse)
@app.get("/api/health", response_model=HealthResponse)
def health_check(ctx: AppContext = Depends(get_context)):
    """Report whether the PDF and both API keys are in place."""
    try:
        report = ctx.health_reporter.report()
        health = HealthResponse(
            status=report.status,
            version=settings.VERSION,
            checks=report.checks,
            endpoints=ENDPOINTS,
        )
    except Exception:
        logger.exception("Health check error")
        return JSONResponse(
            status_code=500,
            content={"status": "unhealthy", "timestamp": utc_timestamp(), "error": "Health check failed"},
            headers=HEALTH_CORS_HEADERS,
        )

    if not report.healthy:
        logger.warning("Health degraded: %s", report.checks)
    return JSONResponse(
        status_code=200 if report.healthy else 503,
        content=health.model_dump(),
        headers=HEALTH_CORS_HEADERS,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
