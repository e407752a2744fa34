import time
import uuid

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from slaypoints.core.config import get_settings
from slaypoints.core.exceptions import (
    AppError,
    app_exception_handler,
    generic_exception_handler,
    validation_exception_handler,
)
from slaypoints.core.logging import bind_request_context, configure_logging, get_logger
from slaypoints.core.security import create_session_cookie
from slaypoints.routers import auth, pages, points, view
from slaypoints.services.auth_provider import AuthProvider
from slaypoints.services.sessions import SessionRegistry
from slaypoints.storage.base import get_store

settings = get_settings()
configure_logging(debug=settings.debug)
log = get_logger(__name__)

app = FastAPI(
    title="SlayPoints",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def session_cookie_middleware(request, call_next):
    """Re-issue the session cookie for any request that touched a browser session."""
    response = await call_next(request)
    session = getattr(request.state, "session", None)
    if session is not None:
        response.set_cookie(
            key=settings.session_cookie_name,
            value=create_session_cookie(session.cookie_payload()),
            max_age=settings.session_max_age_seconds,
            httponly=True,
            secure=settings.base_url.startswith("https://"),
            samesite="lax",
            path="/",
        )
    return response


@app.middleware("http")
async def request_id_middleware(request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    bind_request_context(request_id)
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    log.info(
        "request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    response.headers["X-Request-ID"] = request_id
    return response


app.add_exception_handler(AppError, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Routers
app.include_router(pages.router, tags=["pages"])
app.include_router(auth.router, prefix="/v1/auth", tags=["auth"])
app.include_router(points.router, prefix="/v1/points", tags=["points"])
app.include_router(view.router, prefix="/v1/view", tags=["view"])


@app.on_event("startup")
async def startup():
    if settings.sentry_dsn:
        import sentry_sdk
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.1)
        log.info("startup", msg="Sentry enabled")
    store = get_store()
    await store.open()
    provider = AuthProvider(store)
    app.state.store = store
    app.state.provider = provider
    app.state.sessions = SessionRegistry(
        provider,
        store,
        idle_timeout=settings.session_idle_timeout_seconds,
        default_theme=settings.default_theme,
    )
    log.info("startup", msg="Document store ready", backend=settings.storage_backend)


@app.on_event("shutdown")
async def shutdown():
    app.state.sessions.close_all()
    await app.state.store.close()


@app.get("/health")
async def health():
    """Health check for load balancers and monitoring."""
    return {"status": "ok"}
