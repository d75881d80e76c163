# rizz/main.py
from __future__ import annotations

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import SUPABASE_URL, supabase_configured
from .completion import ConfigurationError
from .schemas import HealthOutput
from .settings import settings

BUILD = settings.BUILD_TAG

app = FastAPI(title="tagalog-rizz-backend", version=BUILD)

# CORS origins: env-based + hardcoded defaults
ALLOWED_ORIGINS = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()] or [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8888",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error body is {"error": "..."}
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg") or "Invalid request"
    return JSONResponse(status_code=400, content={"error": f"{loc}: {msg}" if loc else msg})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    print(f"[error] {request.method} {request.url.path}: {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.on_event("startup")
def startup():
    # Log critical env vars (not secrets)
    print(f"[startup] BUILD={BUILD}")
    print(f"[startup] SUPABASE_URL={SUPABASE_URL[:50] or 'none'}")

    try:
        cfg = get_completion_config()
        print(f"[startup] OpenRouter configured ({cfg.describe()})")
    except ConfigurationError as e:
        print(f"[startup] OpenRouter not configured (generation will answer 500): {e}")


# Routers (REGISTER AT IMPORT TIME, not in startup)
from .generate_api import get_completion_config, router as generate_router
from .auth_api import router as auth_router
from .favorites.api import router as favorites_router

app.include_router(generate_router)
app.include_router(auth_router)
app.include_router(favorites_router)


@app.get("/healthz", response_model=HealthOutput)
def healthz():
    try:
        get_completion_config()
        completion_ok = True
    except ConfigurationError:
        completion_ok = False

    routes = [r.path for r in app.router.routes if hasattr(r, "path")]
    return HealthOutput(
        build=BUILD,
        routes=routes,
        meta={"completion_configured": completion_ok, "supabase_configured": supabase_configured()},
    )


def run() -> None:
    # Console entry point (`rizz-backend`); hosts set PORT
    print(f"[startup] Serving on 0.0.0.0:{settings.PORT}")
    uvicorn.run("rizz.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
