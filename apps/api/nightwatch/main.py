import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nightwatch.core.config import settings
from nightwatch.core.errors import NightSupervisionError
from nightwatch.routers.alerts import router as alerts_router
from nightwatch.routers.checkpoints import router as checkpoints_router
from nightwatch.routers.reports import router as reports_router
from nightwatch.routers.shifts import router as shifts_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Night Supervision API")

# Comma-separated list, e.g.:
# CORS_ORIGINS="http://localhost:8081,https://dashboard.example.com"
cors_origins = os.getenv("CORS_ORIGINS", "")
allow_origins = [o.strip() for o in cors_origins.split(",") if o.strip()]

# local dev fallback
if not allow_origins:
    allow_origins = [
        "http://localhost:8081",
        "http://127.0.0.1:8081",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NightSupervisionError)
def handle_supervision_error(request: Request, exc: NightSupervisionError):
    logger.debug("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


app.include_router(shifts_router, prefix="/shifts", tags=["shifts"])
app.include_router(checkpoints_router, tags=["checkpoints"])
app.include_router(alerts_router, tags=["alerts"])
app.include_router(reports_router, prefix="/reports", tags=["reports"])


@app.get("/health")
def health():
    return {"status": "ok"}
