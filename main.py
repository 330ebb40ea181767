"""
main.py — LandLedger Entry Point
=================================
This is the file you run to start the land registry service.
It does 4 things in order:
    1. Creates the FastAPI app
    2. Connects the database
    3. Connects the ledger
    4. Registers all API route modules

Run with:
    uvicorn main:app --reload --host 0.0.0.0 --port 8000

Or simply:
    python main.py
"""

import logging
import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from config import settings

# ── Database ──────────────────────────────────────────────────────────────────
from db.session import init_db

# ── Core systems ──────────────────────────────────────────────────────────────
from core.blockchain import blockchain          # the ledger
from core.crypto import crypto_engine          # encryption / hashing / tokens
from core.errors import RegistryError

# ── API Routers (one per registry component) ──────────────────────────────────
from api.routes_identity import router as identity_router
from api.routes_land import router as land_router
from api.routes_sale import router as sale_router
from api.routes_ledger import router as ledger_router
from api.routes_auth import router as auth_router


# ── Logging setup ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    handlers=[
        logging.StreamHandler(),                          # print to terminal
        logging.FileHandler(settings.LOG_FILE),           # also save to file
    ],
)
logger = logging.getLogger("landledger.main")


# ── Lifespan: runs on startup and shutdown ────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Everything BEFORE yield → runs on startup.
    Everything AFTER yield  → runs on shutdown.
    """

    # ── STARTUP ──────────────────────────────────────────────────────────
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    # 1. Initialize database — creates tables if they don't exist yet
    logger.info("Connecting to database...")
    await init_db()
    logger.info("✓ Database ready")

    # 2. Start the ledger
    logger.info("Connecting to ledger...")
    await blockchain.connect()
    logger.info("✓ Ledger connected")

    # 3. Initialize encryption engine
    logger.info("Initializing crypto engine...")
    crypto_engine.initialize()
    logger.info("✓ Crypto engine ready")

    logger.info("=" * 50)
    logger.info(f"  {settings.APP_NAME} is LIVE on port {settings.PORT}")
    logger.info("=" * 50)

    yield   # ← App runs here (handles all requests)

    # ── SHUTDOWN ──────────────────────────────────────────────────────────
    logger.info("Shutting down — closing connections...")
    await blockchain.disconnect()
    logger.info("✓ Shutdown complete")


# ── Create the FastAPI app ────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Land registry with identity verification and two-key title transfer",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# ── Middleware ─────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.ENVIRONMENT == "production":
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=["landledger.gov.in", "*.landledger.gov.in"],
    )


# ── Error handling ────────────────────────────────────────────────────────────
# Every rejected registry operation becomes {"error": CODE, "detail": ..., "details": {...}}
@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError):
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


# ── Register all routers ──────────────────────────────────────────────────────
app.include_router(identity_router, prefix="/identity", tags=["Identity Registry"])
app.include_router(land_router,     prefix="/land",     tags=["Land Registry"])
app.include_router(sale_router,     prefix="/sale",     tags=["Sale Workflow"])
app.include_router(ledger_router,   prefix="/ledger",   tags=["Ledger"])

if settings.ENVIRONMENT != "production":
    app.include_router(auth_router, prefix="/auth", tags=["Auth (development)"])


# ── Root endpoint ─────────────────────────────────────────────────────────────
@app.get("/", tags=["Status"])
async def root():
    """Health check — confirms the API is running."""
    return {
        "system": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "operational",
        "docs": "/docs",
    }


@app.get("/health-check", tags=["Status"])
async def health_check():
    """Deep health check — confirms ledger and crypto are up."""
    return {
        "api": "ok",
        "database": "ok",
        "ledger": await blockchain.ping(),
        "crypto": crypto_engine.is_ready(),
    }


# ── Run directly ──────────────────────────────────────────────────────────────
if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
