# FILE: main.py
"""
Crosswalk Backend - FastAPI Application
Version: 0.4.0

Features:
- Sign in with Apple, HS256 session tokens
- Drops pinned to coordinates, gated by range class (close / far / anywhere)
- High-fives and notifications, fanned out over Pusher
- Vibe: AI coding assistant that commits to a per-user GitHub branch,
  streams progress over SSE and follows the Vercel preview build
"""
import os
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load .env FIRST before any other imports that might need env vars
load_dotenv()

from crosswalk import __version__, config
from crosswalk.db import init_db
from crosswalk.dependencies import init_services, close_services
from crosswalk.errors import CrosswalkError
from crosswalk.auth.router import router as auth_router
from crosswalk.drops.router import router as drops_router
from crosswalk.notifications.router import router as notifications_router
from crosswalk.vibe.router import router as vibe_router

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("crosswalk")

app = FastAPI(
    title="Crosswalk",
    version=__version__,
    description="Location-based drops and the Vibe coding assistant",
)

# ====== CORS ======

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ====== ERRORS ======

@app.exception_handler(CrosswalkError)
async def crosswalk_error_handler(request: Request, exc: CrosswalkError):
    if exc.status_code >= 500:
        logger.error("[error] %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ====== STARTUP ======

@app.on_event("startup")
def on_startup():
    os.makedirs("data", exist_ok=True)
    init_db()
    init_services()

    print("[startup] Checking environment variables...")
    if config.JWT_SECRET:
        print("[startup] CROSSWALK_JWT_SECRET: [OK] set")
    else:
        print("[startup] CROSSWALK_JWT_SECRET: [X] NOT SET - every authenticated route will return 401")

    if config.github_settings().configured:
        print("[startup] GITHUB_TOKEN: [OK] set (enables Vibe branches)")
    else:
        print("[startup] GITHUB_TOKEN: [X] NOT SET - Vibe will fail")

    if os.getenv("ANTHROPIC_API_KEY"):
        print("[startup] ANTHROPIC_API_KEY: [OK] set")
    else:
        print("[startup] ANTHROPIC_API_KEY: [X] NOT SET")

    if config.vercel_settings().configured:
        print("[startup] VERCEL_TOKEN: [OK] set (enables preview status)")
    else:
        print("[startup] VERCEL_TOKEN: [X] NOT SET - previews fall back to GitHub links")

    if config.pusher_settings().configured:
        print("[startup] Pusher: [OK] configured")
    else:
        print("[startup] Pusher: [X] NOT CONFIGURED - realtime updates disabled")


@app.on_event("shutdown")
async def on_shutdown():
    await close_services()


# ====== ROUTERS ======

app.include_router(auth_router)
app.include_router(drops_router)
app.include_router(notifications_router)
app.include_router(vibe_router)


# ====== PUBLIC ENDPOINTS ======

@app.get("/ping")
def ping():
    """Health check (public)."""
    return {"status": "ok", "version": __version__}
