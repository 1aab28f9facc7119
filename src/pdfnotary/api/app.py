"""FastAPI application exposing pdfnotary services."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, File, HTTPException, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from pdfnotary.api.schemas import AbortResponse, HealthResponse, NotarizationEnvelope, VerificationResponse
from pdfnotary.config import Settings, get_settings
from pdfnotary.metrics.observability import bind_correlation_id, clear_correlation_id, configure_logging, get_logger
from pdfnotary.models import AbortReason
from pdfnotary.registry import build_registry
from pdfnotary.services.notarization import NotarizationPipeline, build_pipeline
from pdfnotary.services.verification import VerificationService


@dataclass(frozen=True)
class AppDependencies:
    pipeline: NotarizationPipeline
    verifier: VerificationService


class RateLimiter:
    """Sliding-window request limiter keyed by client address and path."""

    def __init__(self, requests: int, window_seconds: int, *, clock: Callable[[], float] = time.time) -> None:
        self.requests = requests
        self.window = window_seconds
        self._clock = clock
        self._buckets: dict[str, list[float]] = {}
        self._last_sweep = clock()

    def __call__(self, request: Request) -> None:
        client_ip = request.headers.get("x-forwarded-for") or (request.client.host if request.client else "-")
        key = f"{client_ip}:{request.url.path}"
        now = self._clock()
        cutoff = now - self.window
        if now - self._last_sweep >= self.window:
            self._sweep(cutoff)
            self._last_sweep = now
        bucket = self._buckets.setdefault(key, [])
        # Drop old entries
        while bucket and bucket[0] < cutoff:
            bucket.pop(0)
        if len(bucket) >= self.requests:
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded")
        bucket.append(now)

    def _sweep(self, cutoff: float) -> None:
        # Forget clients whose newest request has left the window.
        stale = [key for key, bucket in self._buckets.items() if not bucket or bucket[-1] < cutoff]
        for key in stale:
            del self._buckets[key]

    @property
    def tracked_clients(self) -> int:
        return len(self._buckets)


def _build_dependencies(settings: Settings) -> AppDependencies:
    pipeline = build_pipeline(settings)
    verifier = VerificationService(build_registry(settings))
    return AppDependencies(pipeline=pipeline, verifier=verifier)


def create_app(*, settings: Settings | None = None, dependencies: AppDependencies | None = None) -> FastAPI:
    settings = settings or get_settings()
    deps = dependencies or _build_dependencies(settings)

    configure_logging()
    logger = get_logger("api")
    app = FastAPI(title="pdfnotary API", version="0.1.0")
    app.state.dependencies = deps

    # Optional CORS
    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=list(settings.cors_allow_methods),
            allow_headers=list(settings.cors_allow_headers),
        )

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get("X-Request-ID", uuid4().hex)
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    # Security dependencies
    def require_api_key(request: Request) -> None:
        expected = settings.api_key
        if not expected:
            return
        provided = request.headers.get("X-API-Key")
        if provided != expected:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

    rate_limiter = RateLimiter(settings.rate_limit_requests, settings.rate_limit_window_seconds)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        correlation_id = getattr(request.state, "correlation_id", uuid4().hex)
        logger.error("unhandled.error", correlation_id=correlation_id, error=type(exc).__name__)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal Server Error", "correlation_id": correlation_id},
        )

    def get_dependencies(request: Request) -> AppDependencies:
        return request.app.state.dependencies

    def get_pipeline(dep: AppDependencies = Depends(get_dependencies)) -> NotarizationPipeline:
        return dep.pipeline

    def get_verifier(dep: AppDependencies = Depends(get_dependencies)) -> VerificationService:
        return dep.verifier

    async def read_upload(upload: UploadFile) -> bytes:
        limit = settings.max_upload_size_mb * 1024 * 1024
        buffer = bytearray()
        try:
            while True:
                chunk = await upload.read(1024 * 1024)  # 1MB chunks
                if not chunk:
                    break
                buffer.extend(chunk)
                if len(buffer) > limit:
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=f"File too large (>{settings.max_upload_size_mb}MB)",
                    )
        finally:
            await upload.close()
        if not buffer:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File is empty")
        return bytes(buffer)

    @app.post(
        "/analyze",
        response_model=NotarizationEnvelope,
        responses={status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": AbortResponse}},
    )
    async def analyze_document(
        file: UploadFile = File(...),
        pipeline: NotarizationPipeline = Depends(get_pipeline),
        _auth: None = Depends(require_api_key),
        _rl: None = Depends(rate_limiter),
    ) -> Response:
        content = await read_upload(file)
        outcome = pipeline.notarize(content)
        if not outcome.completed or outcome.result is None:
            reason = outcome.abort_reason or AbortReason.UNSUPPORTED_TYPE
            status_code = (
                status.HTTP_500_INTERNAL_SERVER_ERROR
                if reason is AbortReason.UNSUPPORTED_TYPE
                else status.HTTP_422_UNPROCESSABLE_ENTITY
            )
            body = AbortResponse(detail=outcome.detail or reason.value, reason=reason.value)
            return JSONResponse(status_code=status_code, content=body.model_dump())
        envelope = NotarizationEnvelope(**outcome.result.to_envelope())
        return JSONResponse(
            content=envelope.model_dump(),
            headers={"X-Metadata-Fallback": "true" if outcome.result.used_fallback else "false"},
        )

    @app.post("/verify/file", response_model=VerificationResponse)
    async def verify_file(
        file: UploadFile = File(...),
        verifier: VerificationService = Depends(get_verifier),
        _auth: None = Depends(require_api_key),
        _rl: None = Depends(rate_limiter),
    ) -> VerificationResponse:
        content = await read_upload(file)
        result = verifier.verify_content(content)
        return VerificationResponse(**result.to_dict())

    @app.post("/verify/meta", response_model=VerificationResponse)
    async def verify_metadata(
        request: Request,
        payload: Any = Body(...),
        verifier: VerificationService = Depends(get_verifier),
        _auth: None = Depends(require_api_key),
        _rl: None = Depends(rate_limiter),
    ) -> VerificationResponse:
        total_len = request.headers.get("content-length")
        try:
            declared = int(total_len) if total_len else 0
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid Content-Length") from None
        if declared > settings.metadata_body_limit_kb * 1024:
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Payload too large")
        if not isinstance(payload, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="JSON object body required")
        result = verifier.verify_metadata(payload)
        return VerificationResponse(**result.to_dict())

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz", response_model=HealthResponse)
    async def healthcheck() -> HealthResponse:
        from pdfnotary import __version__

        return HealthResponse(
            status="ok",
            version=__version__,
            environment=settings.environment,
            agent_version=settings.agent_version,
            use_model_generator=settings.use_model_generator,
            registry_enabled=settings.registry_enabled,
        )

    @app.head("/healthz")
    async def healthcheck_head() -> Response:
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/livez")
    async def liveness() -> dict[str, str]:
        return {"status": "alive"}

    return app


app = create_app()
