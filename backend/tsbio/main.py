"""
TSBIO - Backend API
Storefront, Pi login, and admin back-office API for the TSBIO marketplace
"""
import logging
import time
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from tsbio.api import admin, admin_categories, admin_media, admin_products, admin_wallets, auth, public
from tsbio.core.config import check_supabase_consistency, settings
from tsbio.core.database import get_db_connection_dict_with_retry
from tsbio.core.errors import ApiError, register_error_handlers

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"https://.*\.vercel\.app",  # Preview deployments of the storefront
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)


@app.middleware("http")
async def canonical_host_redirect(request: Request, call_next):
    """308 from www.tsbio.life (and other REDIRECT_HOSTS) to the canonical host, path and query kept"""
    host = (request.headers.get("host") or "").split(":")[0].lower()
    if host and host in settings.get_redirect_hosts():
        target = request.url.replace(scheme="https", netloc=settings.CANONICAL_HOST)
        return RedirectResponse(url=str(target), status_code=308)
    return await call_next(request)


# Include API routers
app.include_router(public.router)
app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(admin_media.router)
app.include_router(admin_products.router)
app.include_router(admin_categories.router)
app.include_router(admin_wallets.router)


@app.on_event("startup")
async def startup_checks():
    if not settings.supabase_admin_configured:
        logger.warning("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set; admin routes will fail")
    check_supabase_consistency()


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": "TSBIO API",
        "status": "online",
        "version": settings.API_VERSION,
    }


@app.get("/health")
async def health():
    """Health check for monitoring: Supabase config plus database latency when DATABASE_URL is set"""
    start_time = time.time()

    db_status = "not_configured"
    db_latency_ms = None
    db_error = None

    if settings.DATABASE_URL:
        try:
            db_start = time.time()
            conn = get_db_connection_dict_with_retry(max_retries=1, retry_delay=0.5)
            conn.close()
            db_latency_ms = round((time.time() - db_start) * 1000, 2)
            db_status = "connected"
        except ApiError as e:
            db_status = "disconnected"
            db_error = str(e.detail)

    status = "degraded" if db_status == "disconnected" or not settings.supabase_admin_configured else "healthy"

    return {
        "status": status,
        "service": "tsbio-api",
        "version": settings.API_VERSION,
        "supabase": {
            "configured": settings.supabase_admin_configured,
            "consistent": check_supabase_consistency(),
        },
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error,
        },
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("tsbio.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.API_DEBUG)
