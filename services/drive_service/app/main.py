# services/drive_service/app/main.py
from fastapi import FastAPI, Request, HTTPException
from core.config import settings
from core.models import ApiResponse
from core.supabase_client import get_supabase_client
import time
import logging
from contextlib import asynccontextmanager

# Use logger configured in core.config
logger = logging.getLogger("Drive_Core").getChild("DriveService")


# --- Rate Limiting ---
# In-memory, per process. NOT suitable for multi-instance deployments.
RATE_LIMIT_STORE = {}

async def rate_limiter(request: Request):
    client_ip = request.client.host if request.client else "unknown"
    current_time = time.time()
    period = settings.AUTH_RATE_LIMIT_PERIOD

    # Basic cleanup (inefficient for high load)
    for ip in list(RATE_LIMIT_STORE.keys()):
        if current_time - RATE_LIMIT_STORE[ip]['timestamp'] > period * 1.5:
            RATE_LIMIT_STORE.pop(ip, None)

    client_data = RATE_LIMIT_STORE.get(client_ip)
    if client_data and current_time - client_data['timestamp'] < period:
        if client_data['count'] >= settings.AUTH_RATE_LIMIT_MAX_CALLS:
            logger.warning(f"Rate limit exceeded for IP: {client_ip}")
            raise HTTPException(status_code=429, detail="Rate limit exceeded")
        client_data['count'] += 1
        client_data['timestamp'] = current_time
    else:
        RATE_LIMIT_STORE[client_ip] = {'count': 1, 'timestamp': current_time}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: warm up the shared Supabase client
    logger.info("Drive Service lifespan startup: Initializing Supabase client.")
    try:
        await get_supabase_client()
        app.state.supabase_ready = True
    except Exception as e:
        # Log and keep serving; requests touching Supabase will fail individually
        logger.error(f"Failed to initialize Supabase client during startup: {e}", exc_info=False)
        app.state.supabase_ready = False

    yield # Application runs here

    logger.info("Drive Service lifespan shutdown.")

# --- FastAPI App ---
app = FastAPI(
    title="Drive Service",
    description="File storage and sharing on top of Supabase auth, tables and storage",
    version="1.0.0",
    lifespan=lifespan
)

# --- Health Check ---
@app.get("/health", response_model=ApiResponse, tags=["Meta"])
async def health_check(request: Request):
    client_status = "initialized" if getattr(request.app.state, 'supabase_ready', False) else "NOT initialized"
    return ApiResponse(status="success", message=f"Drive Service is running (Supabase Client: {client_status})")

# --- Routing ---
# Import routers AFTER app is defined
from .routers import auth, dashboard, files

app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(files.router, prefix="/files", tags=["Files"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])

@app.get("/", response_model=ApiResponse, tags=["Meta"])
async def read_root():
    return ApiResponse(status="success", message="Welcome to the Drive Service")
